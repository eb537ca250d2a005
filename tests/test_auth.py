"""
Password hashing and bearer token tests
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import jwt
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.auth_service import AuthService, JWT_ALGORITHM
from backend.errors import AuthenticationError, ValidationError
from database import Identity, User

SECRET = 'unit-test-secret'


@pytest.fixture
def auth():
    return AuthService(MagicMock(name='db_manager'), SECRET, bcrypt_rounds=4)


@pytest.fixture
def user():
    return User(id=12, username='alice', email='alice@example.com')


class TestPasswords:

    def test_hash_and_verify(self, auth):
        hashed = auth.hash_password('correct horse')

        assert hashed != 'correct horse'
        assert AuthService.verify_password('correct horse', hashed)
        assert not AuthService.verify_password('wrong horse', hashed)

    def test_hashes_are_salted(self, auth):
        assert auth.hash_password('password123') != auth.hash_password('password123')

    def test_over_long_password_never_verifies(self, auth):
        hashed = auth.hash_password('x' * 72)

        # Anything past 72 bytes would be silently dropped by bcrypt
        assert not AuthService.verify_password('x' * 73, hashed)
        assert AuthService.verify_password('x' * 72, hashed)


class TestTokens:

    def test_round_trip(self, auth, user):
        identity = auth.verify_token(auth.issue_token(user))

        assert identity == Identity(user_id=12, username='alice', email='alice@example.com')

    def test_missing_token(self, auth):
        with pytest.raises(AuthenticationError, match="No authorization token provided"):
            auth.verify_token(None)

    def test_expired_token(self, user):
        service = AuthService(MagicMock(), SECRET, jwt_expiration=timedelta(seconds=-1))

        with pytest.raises(AuthenticationError, match="Token has expired"):
            service.verify_token(service.issue_token(user))

    def test_wrong_secret(self, auth, user):
        other = AuthService(MagicMock(), 'another-secret')

        with pytest.raises(AuthenticationError, match="Invalid token"):
            auth.verify_token(other.issue_token(user))

    def test_garbage_token(self, auth):
        with pytest.raises(AuthenticationError, match="Invalid token"):
            auth.verify_token('not.a.token')

    def test_token_without_identity_claims(self, auth):
        now = datetime.now(timezone.utc)
        token = jwt.encode({'sub': '1', 'iat': now, 'exp': now + timedelta(minutes=5)},
                           SECRET, algorithm=JWT_ALGORITHM)

        with pytest.raises(AuthenticationError, match="Invalid token"):
            auth.verify_token(token)

    def test_secret_required(self):
        with pytest.raises(ValueError):
            AuthService(MagicMock(), '')


class TestLoginGuards:

    def test_login_requires_both_fields(self, auth):
        with pytest.raises(ValidationError):
            auth.login_user('alice', '')
        auth.db_manager.get_cursor.assert_not_called()

    def test_registration_validated_before_database(self, auth):
        with pytest.raises(ValidationError):
            auth.register_user('a', 'alice@example.com', 'password123')
        auth.db_manager.run_transaction.assert_not_called()

    def test_login_rejects_non_string_credentials(self, auth):
        with pytest.raises(ValidationError, match="must be strings"):
            auth.login_user('alice', 12345678)
        with pytest.raises(ValidationError):
            auth.login_user(['alice'], 'password123')
        auth.db_manager.get_cursor.assert_not_called()

    def test_registration_rejects_password_over_72_bytes(self, auth):
        with pytest.raises(ValidationError) as exc_info:
            auth.register_user('alice', 'alice@example.com', 'é' * 40)

        assert exc_info.value.errors == ["Password must not exceed 72 bytes"]
        auth.db_manager.run_transaction.assert_not_called()

    def test_change_password_rejects_non_string_old_password(self, auth):
        cursor = auth.db_manager.get_cursor.return_value.__enter__.return_value
        cursor.fetchone.return_value = {
            'id': 12, 'username': 'alice', 'email': 'alice@example.com',
            'password_hash': auth.hash_password('password123'),
            'first_name': None, 'last_name': None, 'phone_number': None,
            'created_at': None, 'updated_at': None,
        }

        with pytest.raises(AuthenticationError, match="Current password is incorrect"):
            auth.change_password(12, 12345678, 'new-password-1')
        auth.db_manager.run_transaction.assert_not_called()

    def test_change_password_rejects_new_password_over_72_bytes(self, auth):
        with pytest.raises(ValidationError, match="New password must not exceed 72 bytes"):
            auth.change_password(12, 'password123', 'x' * 73)
        auth.db_manager.get_cursor.assert_not_called()
