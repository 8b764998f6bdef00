"""Tests for legacy <-> organization role mapping."""

from __future__ import annotations

import pytest

from app.features.roles.lattice import AccountClass, LegacyRole, Role
from app.features.roles.mapping import (
    legacy_role_label,
    legacy_to_role,
    parse_legacy_role,
    role_label,
    role_to_legacy,
)


class TestLegacyToRole:
    @pytest.mark.parametrize(
        "legacy, home, expected",
        [
            (LegacyRole.ROOT, True, Role.ROOT_ADMIN),
            (LegacyRole.ROOT, False, Role.ADMIN),
            (LegacyRole.OPERATOR_ADMIN, True, Role.ADMIN),
            (LegacyRole.OPERATOR_ADMIN, False, Role.ADMIN),
            (LegacyRole.INTERNAL_ADMIN, False, Role.ADMIN),
            (LegacyRole.INTERNAL_EDITOR, False, Role.EDITOR),
            (LegacyRole.OPERATOR_ANALYST, False, Role.VIEWER),
            (LegacyRole.INTERNAL_ANALYST, True, Role.VIEWER),
            (LegacyRole.EXTERNAL_ADMIN, True, Role.ADMIN),
            (LegacyRole.EXTERNAL_ADMIN, False, Role.NONE),
            (LegacyRole.EXTERNAL_EDITOR, True, Role.EDITOR),
            (LegacyRole.EXTERNAL_EDITOR, False, Role.NONE),
            (LegacyRole.EXTERNAL_ANALYST, True, Role.VIEWER),
            (LegacyRole.EXTERNAL_ANALYST, False, Role.NONE),
            (LegacyRole.MANAGER_ADMIN, True, Role.ADMIN),
            (LegacyRole.MANAGER_ADMIN, False, Role.NONE),
        ],
    )
    def test_mapping_table(self, legacy, home, expected):
        assert legacy_to_role(legacy, home) is expected

    @pytest.mark.parametrize("legacy", [None, 0, 11, -1, 99])
    def test_unrecognized_is_none(self, legacy):
        assert legacy_to_role(legacy, True) is Role.NONE
        assert legacy_to_role(legacy, False) is Role.NONE

    def test_raw_stored_int_is_accepted(self):
        assert legacy_to_role(4, True) is Role.ADMIN

    def test_total_over_every_legacy_value(self):
        for legacy in LegacyRole:
            for home in (True, False):
                assert legacy_to_role(legacy, home) in set(Role)


class TestRoleToLegacy:
    def test_internal_root_admin_is_root(self):
        assert role_to_legacy(Role.ROOT_ADMIN, AccountClass.INTERNAL) is LegacyRole.ROOT

    @pytest.mark.parametrize(
        "account_class, expected",
        [
            (AccountClass.EXTERNAL, LegacyRole.EXTERNAL_ADMIN),
            (AccountClass.OPERATOR, LegacyRole.OPERATOR_ADMIN),
            (AccountClass.MANAGER, LegacyRole.MANAGER_ADMIN),
        ],
    )
    def test_root_admin_outside_root_council_is_class_admin(self, account_class, expected):
        assert role_to_legacy(Role.ROOT_ADMIN, account_class) is expected

    def test_class_disambiguates_viewer(self):
        assert role_to_legacy(Role.VIEWER, AccountClass.INTERNAL) is LegacyRole.INTERNAL_ANALYST
        assert role_to_legacy(Role.VIEWER, AccountClass.EXTERNAL) is LegacyRole.EXTERNAL_ANALYST
        assert role_to_legacy(Role.VIEWER, AccountClass.OPERATOR) is LegacyRole.OPERATOR_ANALYST

    def test_missing_legacy_constants(self):
        assert role_to_legacy(Role.EDITOR, AccountClass.OPERATOR) is None
        assert role_to_legacy(Role.EDITOR, AccountClass.MANAGER) is None
        assert role_to_legacy(Role.VIEWER, AccountClass.MANAGER) is None

    @pytest.mark.parametrize("account_class", list(AccountClass))
    def test_none_records_no_legacy_role(self, account_class):
        assert role_to_legacy(Role.NONE, account_class) is None
        assert role_to_legacy(None, account_class) is None

    def test_round_trip_where_defined(self):
        for role in Role:
            for account_class in AccountClass:
                legacy = role_to_legacy(role, account_class)
                if legacy is None:
                    continue
                expected = role
                if role is Role.ROOT_ADMIN and account_class is not AccountClass.INTERNAL:
                    expected = Role.ADMIN
                assert legacy_to_role(legacy, True) is expected, (role, account_class)


class TestLabels:
    def test_role_labels(self):
        assert role_label(Role.VIEWER) == "Data analyst"
        assert role_label(None) == "No rights"

    def test_legacy_labels(self):
        assert legacy_role_label(7) == "Manager"
        assert legacy_role_label(42) == "Unknown"

    def test_parse_legacy_role(self):
        assert parse_legacy_role(1) is LegacyRole.ROOT
        assert parse_legacy_role(12) is None


def test_role_order():
    assert Role.ROOT_ADMIN.at_least(Role.ADMIN)
    assert Role.ADMIN.at_least(Role.ADMIN)
    assert not Role.VIEWER.at_least(Role.EDITOR)
    assert Role.VIEWER.at_least(Role.NONE)
