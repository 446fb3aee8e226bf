import pytest

from storefront.domain.errors import AuthenticationFailed, EmailAlreadyRegistered
from storefront.domain.schemas import SignInIn, SignUpIn
from storefront.services.user_service import UserService, hash_password, verify_password


class TestPasswords:
    def test_hash_round_trip(self):
        encoded = hash_password("swoosh-1234")

        assert encoded.startswith("$argon2id$")
        assert verify_password("swoosh-1234", encoded)
        assert not verify_password("swoosh-12345", encoded)

    def test_salted(self):
        assert hash_password("same-password") != hash_password("same-password")

    def test_malformed_hash(self):
        assert not verify_password("anything", "plaintext")


class TestUserService:
    def test_sign_up_normalises_email(self, db):
        user, token = UserService(db).sign_up(
            SignUpIn(email="Kim@Example.COM", password="swoosh-1234", name=" Kim ")
        )

        assert user.email == "kim@example.com"
        assert user.name == "Kim"
        assert token

    def test_duplicate(self, db):
        service = UserService(db)
        service.sign_up(SignUpIn(email="kim@example.com", password="swoosh-1234", name="Kim"))

        with pytest.raises(EmailAlreadyRegistered):
            service.sign_up(SignUpIn(email="KIM@example.com", password="swoosh-5678", name="Kim 2"))

    def test_sign_in_opens_a_new_session(self, db):
        service = UserService(db)
        _, first = service.sign_up(SignUpIn(email="kim@example.com", password="swoosh-1234", name="Kim"))

        user, second = service.sign_in(SignInIn(email="kim@example.com", password="swoosh-1234"))

        assert user.email == "kim@example.com"
        assert second != first

    @pytest.mark.parametrize("email,password", [("kim@example.com", "wrong-pass"), ("nobody@example.com", "swoosh-1234")])
    def test_bad_credentials(self, db, email, password):
        UserService(db).sign_up(SignUpIn(email="kim@example.com", password="swoosh-1234", name="Kim"))

        with pytest.raises(AuthenticationFailed):
            UserService(db).sign_in(SignInIn(email=email, password=password))
