"""Tests for user validation and credential operations."""

from datetime import datetime, timedelta

import pytest
from conftest import RecordingMailer, create_user
from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from app.errors import ValidationError
from app.models.user import TokenKind, User
from app.services.users import UserService


class TestValidation:
    """Tests for the validated save path."""

    def test_valid_user_saves(self, db_session: Session):
        user = UserService().create(db_session, "Example User", "user@example.com", "foobar")
        assert user.id is not None
        assert user.activated is False
        assert user.password_digest != "foobar"

    def test_email_saved_lowercase(self, db_session: Session):
        user = UserService().create(db_session, "Mixed Case", "Foo@Bar.COM", "foobar")
        db_session.expire_all()
        reloaded = db_session.get(User, user.id)
        assert reloaded.email == "foo@bar.com"

    def test_duplicate_email_rejected_case_insensitively(self, db_session: Session):
        UserService().create(db_session, "First", "dup@example.com", "foobar")
        with pytest.raises(ValidationError) as exc_info:
            UserService().create(db_session, "Second", "DUP@Example.com", "foobar")
        assert exc_info.value.errors == {"email": ["has already been taken"]}

    def test_blank_name_rejected(self, db_session: Session):
        with pytest.raises(ValidationError) as exc_info:
            UserService().create(db_session, "   ", "user@example.com", "foobar")
        assert "name" in exc_info.value.errors

    def test_long_name_rejected(self, db_session: Session):
        with pytest.raises(ValidationError) as exc_info:
            UserService().create(db_session, "a" * 51, "user@example.com", "foobar")
        assert "name" in exc_info.value.errors

    def test_long_email_rejected(self, db_session: Session):
        with pytest.raises(ValidationError) as exc_info:
            UserService().create(db_session, "User", "a" * 244 + "@example.com", "foobar")
        assert "email" in exc_info.value.errors

    @pytest.mark.parametrize(
        "email",
        ["user@example,com", "user_at_foo.org", "user.name@example.", "foo@bar_baz.com", "foo@bar+baz.com"],
    )
    def test_invalid_email_rejected(self, db_session: Session, email: str):
        with pytest.raises(ValidationError) as exc_info:
            UserService().create(db_session, "User", email, "foobar")
        assert exc_info.value.errors["email"] == ["is invalid"]

    @pytest.mark.parametrize(
        "email",
        ["user@example.com", "USER@foo.COM", "A_US-ER@foo.bar.org", "first.last@foo.jp", "alice+bob@baz.cn"],
    )
    def test_valid_email_accepted(self, db_session: Session, email: str):
        user = UserService().create(db_session, "User", email, "foobar")
        assert user.email == email.lower()

    def test_collects_every_failing_field(self, db_session: Session):
        user = User(name="", email="bad")
        with pytest.raises(ValidationError) as exc_info:
            UserService().save(db_session, user)
        assert set(exc_info.value.errors) == {"name", "email", "password"}
        assert "Name can't be blank" in str(exc_info.value)

    @pytest.mark.parametrize("password", [None, "", "      "])
    def test_blank_password_rejected(self, db_session: Session, password):
        with pytest.raises(ValidationError) as exc_info:
            UserService().create(db_session, "User", "user@example.com", password)
        assert exc_info.value.errors == {"password": ["can't be blank"]}

    def test_short_password_rejected(self, db_session: Session):
        with pytest.raises(ValidationError) as exc_info:
            UserService().create(db_session, "User", "user@example.com", "a" * 5)
        assert "too short" in exc_info.value.errors["password"][0]

    def test_password_over_bcrypt_limit_rejected(self, db_session: Session):
        with pytest.raises(ValidationError) as exc_info:
            UserService().create(db_session, "User", "user@example.com", "a" * 73)
        assert "too long" in exc_info.value.errors["password"][0]


class TestProfileUpdate:
    """Tests for profile edits."""

    def test_update_without_password_keeps_credential(self, db_session: Session):
        user = create_user(db_session)
        digest_before = user.password_digest

        UserService().update_profile(db_session, user, name="Renamed", password="")

        assert user.name == "Renamed"
        assert user.password_digest == digest_before
        assert user.check_password("password123")

    def test_update_with_new_password(self, db_session: Session):
        user = create_user(db_session)
        UserService().update_profile(db_session, user, password="newpassword")
        assert user.check_password("newpassword")
        assert not user.check_password("password123")

    def test_update_with_short_password_rejected(self, db_session: Session):
        user = create_user(db_session)
        with pytest.raises(ValidationError):
            UserService().update_profile(db_session, user, password="abc")
        assert user.check_password("password123")

    def test_update_email_to_taken_address_rejected(self, db_session: Session):
        create_user(db_session, email="taken@example.com")
        user = create_user(db_session, email="mine@example.com")
        with pytest.raises(ValidationError) as exc_info:
            UserService().update_profile(db_session, user, email="Taken@example.com")
        assert exc_info.value.errors == {"email": ["has already been taken"]}

    def test_keeping_own_email_is_not_a_duplicate(self, db_session: Session):
        user = create_user(db_session)
        UserService().update_profile(db_session, user, email="TEST@example.com")
        assert user.email == "test@example.com"


class TestLookup:
    """Tests for user lookup."""

    def test_find_by_email_ignores_case(self, db_session: Session):
        user = create_user(db_session)
        assert UserService().find_by_email(db_session, "  Test@Example.COM ") is user

    def test_find_missing(self, db_session: Session):
        assert UserService().find(db_session, 999) is None
        assert UserService().find_by_email(db_session, "nobody@example.com") is None


class TestRemember:
    """Tests for remember tokens and session tokens."""

    def test_remember_then_authenticated(self, db_session: Session):
        user = create_user(db_session)
        token = user.remember(db_session)
        assert user.authenticated(TokenKind.REMEMBER, token)
        assert user.remember_digest != token

    def test_remember_digest_persisted(self, db_session: Session):
        user = create_user(db_session)
        token = user.remember(db_session)
        db_session.expire_all()
        assert db_session.get(User, user.id).authenticated(TokenKind.REMEMBER, token)

    def test_forget_invalidates_token(self, db_session: Session):
        user = create_user(db_session)
        token = user.remember(db_session)
        user.forget(db_session)
        assert user.remember_digest is None
        assert not user.authenticated(TokenKind.REMEMBER, token)

    def test_forget_is_idempotent(self, db_session: Session):
        user = create_user(db_session)
        user.forget(db_session)
        user.forget(db_session)
        assert user.remember_digest is None

    def test_remember_replaces_previous_token(self, db_session: Session):
        user = create_user(db_session)
        old_token = user.remember(db_session)
        new_token = user.remember(db_session)
        assert not user.authenticated(TokenKind.REMEMBER, old_token)
        assert user.authenticated(TokenKind.REMEMBER, new_token)

    def test_session_token_reuses_remember_token(self, db_session: Session):
        user = create_user(db_session)
        token = user.remember(db_session)
        assert user.session_token(db_session) == token

    def test_session_token_remembers_when_needed(self, db_session: Session):
        user = create_user(db_session)
        assert user.remember_digest is None
        token = user.session_token(db_session)
        assert user.authenticated(TokenKind.REMEMBER, token)
        assert user.session_token(db_session) == token

    def test_authenticated_without_digest(self, db_session: Session):
        user = create_user(db_session)
        assert user.authenticated(TokenKind.REMEMBER, "") is False
        assert user.authenticated("reset", "anything") is False


class TestActivation:
    """Tests for account activation."""

    def test_activation_digest_created_on_insert(self, db_session: Session):
        user = create_user(db_session, activated=False)
        assert user.activation_token
        assert user.activation_digest
        assert user.activation_digest != user.activation_token
        assert user.authenticated(TokenKind.ACTIVATION, user.activation_token)

    def test_wrong_activation_token(self, db_session: Session):
        user = create_user(db_session, activated=False)
        assert not user.authenticated(TokenKind.ACTIVATION, "wrong-token")

    def test_activate(self, db_session: Session):
        user = create_user(db_session, activated=False)
        user.activate(db_session)
        db_session.expire_all()
        reloaded = db_session.get(User, user.id)
        assert reloaded.activated is True
        assert reloaded.activated_at is not None

    def test_activate_twice(self, db_session: Session):
        user = create_user(db_session, activated=False)
        user.activate(db_session)
        user.activate(db_session)
        assert user.activated is True

    def test_send_activation_email(self, db_session: Session):
        mailer = RecordingMailer()
        user = create_user(db_session, activated=False)
        user.send_activation_email(mailer)
        assert mailer.activations == [("test@example.com", user.activation_token)]


class TestPasswordReset:
    """Tests for reset digests and expiry."""

    def test_create_reset_digest(self, db_session: Session):
        user = create_user(db_session)
        user.create_reset_digest(db_session)
        assert user.reset_sent_at is not None
        assert user.authenticated(TokenKind.RESET, user.reset_token)

    def test_not_expired_right_after_request(self, db_session: Session):
        user = create_user(db_session)
        user.create_reset_digest(db_session)
        assert user.password_reset_expired() is False

    def test_expired_after_two_hours(self, db_session: Session):
        user = create_user(db_session)
        user.create_reset_digest(db_session)
        user.reset_sent_at = datetime.utcnow() - timedelta(hours=2, minutes=1)
        assert user.password_reset_expired() is True

    def test_expiry_without_request_raises(self, db_session: Session):
        user = create_user(db_session)
        with pytest.raises(ValueError):
            user.password_reset_expired()

    def test_clear_reset_digest(self, db_session: Session):
        user = create_user(db_session)
        user.create_reset_digest(db_session)
        token = user.reset_token
        user.clear_reset_digest(db_session)
        assert user.reset_digest is None
        assert not user.authenticated(TokenKind.RESET, token)

    def test_send_password_reset_email(self, db_session: Session):
        mailer = RecordingMailer()
        user = create_user(db_session)
        user.create_reset_digest(db_session)
        user.send_password_reset_email(mailer)
        assert mailer.resets == [("test@example.com", user.reset_token)]


class TestDirectColumnUpdates:
    """Direct column writes leave other unsaved edits alone."""

    def _stored(self, db: Session, user_id: int):
        return db.execute(
            select(User.name, User.email, User.remember_digest, User.reset_digest, User.activated).where(
                User.id == user_id
            )
        ).one()

    def _edit_without_saving(self, db: Session) -> User:
        create_user(db, "Taken", "taken@example.com")
        user = create_user(db, "Mine", "mine@example.com", activated=False)
        user.name = ""
        user.email = "TAKEN@Example.com"
        return user

    def _assert_edits_still_pending(self, db: Session, user: User):
        assert user in db.dirty
        assert user.name == ""
        assert user.email == "TAKEN@Example.com"
        assert inspect(user).attrs.email.history.added == ["TAKEN@Example.com"]

    def test_remember_writes_only_remember_digest(self, db_session: Session):
        user = self._edit_without_saving(db_session)

        token = user.remember(db_session)

        stored = self._stored(db_session, user.id)
        assert (stored.name, stored.email) == ("Mine", "mine@example.com")
        assert stored.remember_digest == user.remember_digest
        assert user.authenticated(TokenKind.REMEMBER, token)
        self._assert_edits_still_pending(db_session, user)

    def test_create_reset_digest_writes_only_reset_columns(self, db_session: Session):
        user = self._edit_without_saving(db_session)

        user.create_reset_digest(db_session)

        stored = self._stored(db_session, user.id)
        assert (stored.name, stored.email) == ("Mine", "mine@example.com")
        assert stored.reset_digest == user.reset_digest
        self._assert_edits_still_pending(db_session, user)

    def test_activate_writes_only_activation_columns(self, db_session: Session):
        user = self._edit_without_saving(db_session)

        user.activate(db_session)

        stored = self._stored(db_session, user.id)
        assert (stored.name, stored.email) == ("Mine", "mine@example.com")
        assert stored.activated is True
        self._assert_edits_still_pending(db_session, user)

    def test_pending_edits_still_validated_on_save(self, db_session: Session):
        user = self._edit_without_saving(db_session)
        user.remember(db_session)

        with pytest.raises(ValidationError) as exc_info:
            UserService().save(db_session, user)
        assert set(exc_info.value.errors) == {"name", "email"}
