"""Tests for app.services.users: validation, transactional writes and role grouping."""

import unittest
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import IntegrityError, OperationalError

from app.services.errors import NotFound, QueryFailure, StorageFailure, ValidationFailure
from app.services.users import (
    create_user,
    delete_user,
    get_user,
    list_users_grouped_by_role,
    update_user,
)
from tests.support import DatabaseTestCase


def _payload(**overrides: object) -> dict:
    data = {"full_name": "Jane Doe", "email": "jane@example.com", "roles": [1]}
    data.update(overrides)
    return data


class TestCreateUser(DatabaseTestCase):
    """create_user validates everything first, then writes user and roles together."""

    def test_creates_user_visible_through_get_user(self) -> None:
        editor, author = self.role_ids["Editor"], self.role_ids["Author"]
        record = create_user(self.db, _payload(roles=[editor, author]))

        self.assertEqual(record.full_name, "Jane Doe")
        self.assertEqual(record.email, "jane@example.com")
        self.assertEqual(record.roles, ("Editor", "Author"))
        self.assertIsNotNone(record.created_at)

        fetched = get_user(self.db, record.id)
        self.assertEqual(fetched.id, record.id)
        self.assertEqual(set(fetched.roles), {"Author", "Editor"})
        self.assertEqual(self.association_rows(record.id), sorted([editor, author]))

    def test_strips_surrounding_whitespace(self) -> None:
        record = create_user(self.db, _payload(full_name="  Jane Doe ", email=" jane@example.com "))
        self.assertEqual(record.full_name, "Jane Doe")
        self.assertEqual(record.email, "jane@example.com")

    def test_duplicate_role_ids_attach_once(self) -> None:
        author = self.role_ids["Author"]
        record = create_user(self.db, _payload(roles=[author, author]))
        self.assertEqual(record.roles, ("Author",))
        self.assertEqual(self.association_rows(record.id), [author])

    def test_duplicate_email_rejected_and_nothing_written(self) -> None:
        create_user(self.db, _payload())
        count_after_first = self.user_count()

        with self.assertRaises(ValidationFailure) as ctx:
            create_user(self.db, _payload(full_name="Jane Doe2"))

        self.assertEqual(ctx.exception.errors, {"email": ["The email has already been taken."]})
        self.assertEqual(self.user_count(), count_after_first)

    def test_email_uniqueness_is_case_sensitive(self) -> None:
        create_user(self.db, _payload())
        record = create_user(self.db, _payload(email="Jane@example.com"))
        self.assertEqual(record.email, "Jane@example.com")
        self.assertEqual(self.user_count(), 2)

    def test_empty_roles_rejected(self) -> None:
        with self.assertRaises(ValidationFailure) as ctx:
            create_user(self.db, _payload(roles=[]))
        self.assertEqual(
            ctx.exception.errors, {"roles": ["The roles field must have at least 1 items."]}
        )
        self.assertEqual(self.user_count(), 0)

    def test_missing_fields_each_reported(self) -> None:
        with self.assertRaises(ValidationFailure) as ctx:
            create_user(self.db, {})
        self.assertEqual(
            ctx.exception.errors,
            {
                "full_name": ["The full name field is required."],
                "email": ["The email field is required."],
                "roles": ["The roles field is required."],
            },
        )

    def test_blank_name_counts_as_missing(self) -> None:
        with self.assertRaises(ValidationFailure) as ctx:
            create_user(self.db, _payload(full_name="   "))
        self.assertEqual(ctx.exception.errors, {"full_name": ["The full name field is required."]})

    def test_invalid_email_format(self) -> None:
        with self.assertRaises(ValidationFailure) as ctx:
            create_user(self.db, _payload(email="not-an-email"))
        self.assertEqual(
            ctx.exception.errors, {"email": ["The email field must be a valid email address."]}
        )

    def test_name_longer_than_255_rejected(self) -> None:
        with self.assertRaises(ValidationFailure) as ctx:
            create_user(self.db, _payload(full_name="x" * 256))
        self.assertEqual(
            ctx.exception.errors,
            {"full_name": ["The full name field must not be greater than 255 characters."]},
        )

    def test_non_string_name_rejected(self) -> None:
        with self.assertRaises(ValidationFailure) as ctx:
            create_user(self.db, _payload(full_name=42))
        self.assertEqual(ctx.exception.errors, {"full_name": ["The full name field must be a string."]})

    def test_unknown_role_id_keyed_by_position(self) -> None:
        with self.assertRaises(ValidationFailure) as ctx:
            create_user(self.db, _payload(roles=[self.role_ids["Author"], 999]))
        self.assertEqual(ctx.exception.errors, {"roles.1": ["The selected roles.1 is invalid."]})
        self.assertEqual(self.user_count(), 0)
        self.assertEqual(self.association_count(), 0)

    def test_non_integer_role_id_keyed_by_position(self) -> None:
        with self.assertRaises(ValidationFailure) as ctx:
            create_user(self.db, _payload(roles=["abc"]))
        self.assertEqual(ctx.exception.errors, {"roles.0": ["The selected roles.0 is invalid."]})

    def test_roles_must_be_a_list(self) -> None:
        with self.assertRaises(ValidationFailure) as ctx:
            create_user(self.db, _payload(roles="1"))
        self.assertEqual(ctx.exception.errors, {"roles": ["The roles field must be an array."]})

    def test_shape_and_store_errors_reported_together(self) -> None:
        create_user(self.db, _payload())
        with self.assertRaises(ValidationFailure) as ctx:
            create_user(self.db, _payload(full_name="", roles=[999]))
        self.assertEqual(
            ctx.exception.errors,
            {
                "full_name": ["The full name field is required."],
                "email": ["The email has already been taken."],
                "roles.0": ["The selected roles.0 is invalid."],
            },
        )

    def test_payload_must_be_a_mapping(self) -> None:
        with self.assertRaises(ValidationFailure) as ctx:
            create_user(self.db, ["Jane"])  # type: ignore[arg-type]
        self.assertIn("body", ctx.exception.errors)

    def test_storage_error_rolls_back(self) -> None:
        err = IntegrityError("INSERT INTO users", {}, Exception("duplicate key"))
        with patch.object(self.db, "commit", side_effect=err):
            with self.assertRaises(StorageFailure) as ctx:
                create_user(self.db, _payload())
        self.assertIn("duplicate key", ctx.exception.message)
        self.assertEqual(self.user_count(), 0)
        self.assertEqual(self.association_count(), 0)

    def test_lookup_error_during_validation_raises_storage_failure(self) -> None:
        err = OperationalError("SELECT users.id", {}, Exception("server closed the connection"))
        with patch.object(self.db, "query", side_effect=err):
            with self.assertRaises(StorageFailure) as ctx:
                create_user(self.db, _payload())
        self.assertIn("server closed the connection", ctx.exception.message)
        self.assertEqual(self.user_count(), 0)

    def test_role_id_beyond_integer_range_keyed_by_position(self) -> None:
        with self.assertRaises(ValidationFailure) as ctx:
            create_user(self.db, _payload(roles=[self.role_ids["Author"], 2**70]))
        self.assertEqual(ctx.exception.errors, {"roles.1": ["The selected roles.1 is invalid."]})
        self.assertEqual(self.user_count(), 0)


class TestGetUser(DatabaseTestCase):
    """get_user returns a record or raises NotFound."""

    def test_unknown_id_raises_not_found(self) -> None:
        with self.assertRaises(NotFound):
            get_user(self.db, 999)

    def test_id_beyond_integer_range_raises_not_found(self) -> None:
        with self.assertRaises(NotFound):
            get_user(self.db, 2**70)
        with self.assertRaises(NotFound):
            get_user(self.db, 0)

    def test_roles_listed_in_role_order(self) -> None:
        record = create_user(
            self.db,
            _payload(roles=[self.role_ids["Administrator"], self.role_ids["Author"]]),
        )
        self.assertEqual(get_user(self.db, record.id).roles, ("Author", "Administrator"))

    def test_record_is_immutable(self) -> None:
        record = create_user(self.db, _payload())
        with self.assertRaises(Exception):
            record.full_name = "Changed"  # type: ignore[misc]


class TestUpdateUser(DatabaseTestCase):
    """update_user applies only present fields; roles, when given, replace the set."""

    def setUp(self) -> None:
        super().setUp()
        self.author = self.role_ids["Author"]
        self.editor = self.role_ids["Editor"]
        self.subscriber = self.role_ids["Subscriber"]
        self.user = create_user(self.db, _payload(roles=[self.author, self.editor]))

    def test_without_roles_keeps_role_set(self) -> None:
        record = update_user(self.db, self.user.id, {"full_name": "Janet Doe"})
        self.assertEqual(record.full_name, "Janet Doe")
        self.assertEqual(record.email, "jane@example.com")
        self.assertEqual(record.roles, ("Author", "Editor"))
        self.assertEqual(self.association_rows(self.user.id), sorted([self.author, self.editor]))

    def test_with_roles_replaces_role_set_exactly(self) -> None:
        record = update_user(self.db, self.user.id, {"roles": [self.editor, self.subscriber]})
        self.assertEqual(record.roles, ("Editor", "Subscriber"))
        self.assertEqual(get_user(self.db, self.user.id).roles, ("Editor", "Subscriber"))
        self.assertEqual(
            self.association_rows(self.user.id), sorted([self.editor, self.subscriber])
        )

    def test_empty_roles_rejected_and_set_untouched(self) -> None:
        with self.assertRaises(ValidationFailure) as ctx:
            update_user(self.db, self.user.id, {"roles": []})
        self.assertIn("roles", ctx.exception.errors)
        self.assertEqual(get_user(self.db, self.user.id).roles, ("Author", "Editor"))

    def test_keeping_own_email_is_allowed(self) -> None:
        record = update_user(self.db, self.user.id, {"email": "jane@example.com"})
        self.assertEqual(record.email, "jane@example.com")

    def test_taking_another_users_email_rejected(self) -> None:
        other = create_user(self.db, _payload(email="john@example.com"))
        with self.assertRaises(ValidationFailure) as ctx:
            update_user(self.db, other.id, {"email": "jane@example.com"})
        self.assertEqual(ctx.exception.errors, {"email": ["The email has already been taken."]})
        self.assertEqual(get_user(self.db, other.id).email, "john@example.com")

    def test_explicit_null_is_rejected_as_required(self) -> None:
        with self.assertRaises(ValidationFailure) as ctx:
            update_user(self.db, self.user.id, {"full_name": None})
        self.assertEqual(ctx.exception.errors, {"full_name": ["The full name field is required."]})

    def test_empty_payload_changes_nothing(self) -> None:
        record = update_user(self.db, self.user.id, {})
        self.assertEqual(record.full_name, "Jane Doe")
        self.assertEqual(record.roles, ("Author", "Editor"))

    def test_unknown_user_raises_not_found(self) -> None:
        with self.assertRaises(NotFound):
            update_user(self.db, 999, {"full_name": "Nobody"})

    def test_storage_error_rolls_back(self) -> None:
        err = OperationalError("UPDATE users", {}, Exception("database is locked"))
        with patch.object(self.db, "commit", side_effect=err):
            with self.assertRaises(StorageFailure):
                update_user(self.db, self.user.id, {"full_name": "Janet", "roles": [self.subscriber]})
        fetched = get_user(self.db, self.user.id)
        self.assertEqual(fetched.full_name, "Jane Doe")
        self.assertEqual(fetched.roles, ("Author", "Editor"))

    def test_lookup_error_during_validation_raises_storage_failure(self) -> None:
        err = OperationalError("SELECT roles.id", {}, Exception("database is locked"))
        with patch("app.services.users._store_errors", side_effect=err):
            with self.assertRaises(StorageFailure):
                update_user(self.db, self.user.id, {"roles": [self.subscriber]})
        self.assertEqual(get_user(self.db, self.user.id).roles, ("Author", "Editor"))


class TestDeleteUser(DatabaseTestCase):
    """delete_user removes the user and every association row."""

    def test_delete_then_get_raises_not_found(self) -> None:
        record = create_user(
            self.db, _payload(roles=[self.role_ids["Author"], self.role_ids["Editor"]])
        )
        delete_user(self.db, record.id)

        with self.assertRaises(NotFound):
            get_user(self.db, record.id)
        self.assertEqual(self.association_rows(record.id), [])
        # Roles themselves are never removed.
        self.assertEqual(len(list_users_grouped_by_role(self.db)), 4)

    def test_other_users_untouched(self) -> None:
        keep = create_user(self.db, _payload(email="keep@example.com"))
        gone = create_user(self.db, _payload(email="gone@example.com"))
        delete_user(self.db, gone.id)
        self.assertEqual(get_user(self.db, keep.id).email, "keep@example.com")
        self.assertEqual(self.association_count(), 1)

    def test_unknown_user_raises_not_found(self) -> None:
        with self.assertRaises(NotFound):
            delete_user(self.db, 999)


class TestListUsersGroupedByRole(DatabaseTestCase):
    """One group per role, each listing every associated user."""

    def test_groups_follow_role_order_and_may_be_empty(self) -> None:
        groups = list_users_grouped_by_role(self.db)
        self.assertEqual(
            [g.role for g in groups], ["Author", "Editor", "Subscriber", "Administrator"]
        )
        self.assertTrue(all(g.users == () for g in groups))

    def test_user_with_two_roles_in_exactly_two_groups(self) -> None:
        jane = create_user(
            self.db, _payload(roles=[self.role_ids["Author"], self.role_ids["Editor"]])
        )
        create_user(
            self.db,
            _payload(full_name="John", email="john@example.com", roles=[self.role_ids["Editor"]]),
        )

        groups = {g.role: g for g in list_users_grouped_by_role(self.db)}
        memberships = [name for name, g in groups.items() if any(u.id == jane.id for u in g.users)]

        self.assertEqual(sorted(memberships), ["Author", "Editor"])
        self.assertEqual([u.full_name for u in groups["Editor"].users], ["Jane Doe", "John"])
        self.assertEqual(groups["Subscriber"].users, ())
        total = sum(len(g.users) for g in groups.values())
        self.assertEqual(total, self.association_count())

    def test_storage_error_raises_query_failure(self) -> None:
        session = MagicMock()
        session.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
        with self.assertRaises(QueryFailure) as ctx:
            list_users_grouped_by_role(session)
        self.assertIn("connection refused", ctx.exception.message)


if __name__ == "__main__":
    unittest.main()
