"""Tests for auth permissions."""

import pytest

from learnhub.auth.permissions import (
    ROLE_HIERARCHY,
    UserRole,
    get_role_level,
    has_permission,
    is_admin,
    is_staff,
)


class TestUserRole:
    def test_role_values(self) -> None:
        assert UserRole.AFFILIATE.value == "affiliate"
        assert UserRole.STUDENT.value == "student"
        assert UserRole.INSTRUCTOR.value == "instructor"
        assert UserRole.ADMIN.value == "admin"
        assert UserRole.SUPER_ADMIN.value == "super_admin"

    def test_all_roles_have_levels(self) -> None:
        for role in UserRole:
            assert role in ROLE_HIERARCHY


class TestGetRoleLevel:
    @pytest.mark.parametrize(
        "role,expected_level",
        [
            (UserRole.AFFILIATE, 0),
            (UserRole.STUDENT, 1),
            (UserRole.INSTRUCTOR, 2),
            (UserRole.ADMIN, 3),
            (UserRole.SUPER_ADMIN, 4),
            ("instructor", 2),
        ],
    )
    def test_known_roles(self, role: UserRole | str, expected_level: int) -> None:
        assert get_role_level(role) == expected_level

    def test_unknown_role_is_level_zero(self) -> None:
        assert get_role_level("pharmacist") == 0


class TestHasPermission:
    def test_higher_role_passes(self) -> None:
        assert has_permission(UserRole.ADMIN, UserRole.INSTRUCTOR)

    def test_same_role_passes(self) -> None:
        assert has_permission(UserRole.STUDENT, UserRole.STUDENT)

    def test_lower_role_fails(self) -> None:
        assert not has_permission("student", "instructor")


@pytest.mark.parametrize(
    "role,staff,admin",
    [
        (UserRole.STUDENT, False, False),
        (UserRole.INSTRUCTOR, True, False),
        (UserRole.ADMIN, True, True),
        (UserRole.SUPER_ADMIN, True, True),
    ],
)
def test_staff_and_admin_checks(role: UserRole, staff: bool, admin: bool) -> None:
    assert is_staff(role) is staff
    assert is_admin(role) is admin
