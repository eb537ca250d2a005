"""
Authentication and authorization service
Implements password hashing, user management and bearer tokens
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from psycopg2 import errors as pg_errors
from psycopg2.extras import RealDictCursor

from backend.errors import (
    AuthenticationError, DuplicateUser, UserNotFound, ValidationError
)
from backend.validation import (
    MAX_PASSWORD_BYTES, validate_registration, password_problems, parse_positive_id
)
from database import User, Identity, row_to_user

logger = logging.getLogger(__name__)

JWT_ALGORITHM = 'HS256'

_USER_COLUMNS = """id, username, email, password_hash, first_name, last_name,
    phone_number, created_at, updated_at"""


class AuthService:
    """Service for user authentication and authorization"""

    def __init__(self, db_manager, jwt_secret: str,
                 jwt_expiration: timedelta = timedelta(hours=24), bcrypt_rounds: int = 10):
        if not jwt_secret:
            raise ValueError("A JWT secret is required")
        self.db_manager = db_manager
        self.jwt_secret = jwt_secret
        self.jwt_expiration = jwt_expiration
        self.bcrypt_rounds = bcrypt_rounds

    def hash_password(self, password: str) -> str:
        """
        Hash a password using bcrypt

        Args:
            password: Plain text password

        Returns:
            Hashed password
        """
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        """
        Verify a password against its hash

        Args:
            password: Plain text password
            password_hash: Hashed password

        Returns:
            True if password matches, False otherwise
        """
        encoded = password.encode('utf-8')
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        return bcrypt.checkpw(encoded, password_hash.encode('utf-8'))

    def issue_token(self, user: User) -> str:
        """Sign a bearer token carrying the user's identity"""
        now = datetime.now(timezone.utc)
        payload = {
            'sub': str(user.id),
            'userId': user.id,
            'username': user.username,
            'email': user.email,
            'iat': now,
            'exp': now + self.jwt_expiration,
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: Optional[str]) -> Identity:
        """
        Validate a bearer token

        Raises:
            AuthenticationError: Missing, expired or tampered token
        """
        if not token:
            raise AuthenticationError("No authorization token provided")
        try:
            payload = jwt.decode(token, self.jwt_secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token")

        try:
            return Identity(user_id=int(payload['userId']),
                            username=payload['username'],
                            email=payload['email'])
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Invalid token")

    def _session(self, user: User) -> dict:
        return {'user': user, 'token': self.issue_token(user)}

    def register_user(self, username: str, email: str, password: str,
                      first_name: Optional[str] = None, last_name: Optional[str] = None,
                      phone_number: Optional[str] = None) -> dict:
        """
        Create a new user

        Returns:
            Dict with the created ``user`` and a signed ``token``

        Raises:
            ValidationError: Malformed username, email or password
            DuplicateUser: Username or email already registered
        """
        validate_registration(username, email, password)
        password_hash = self.hash_password(password)

        def work(conn):
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute("SELECT 1 FROM users WHERE username = %s", (username,))
                if cursor.fetchone():
                    raise DuplicateUser("Username already exists")

                cursor.execute("SELECT 1 FROM users WHERE LOWER(email) = LOWER(%s)", (email,))
                if cursor.fetchone():
                    raise DuplicateUser("Email already registered")

                cursor.execute(f"""
                    INSERT INTO users (username, email, password_hash, first_name, last_name, phone_number)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    RETURNING {_USER_COLUMNS}
                """, (username, email, password_hash, first_name or None,
                      last_name or None, phone_number or None))
                return row_to_user(cursor.fetchone())

        try:
            user = self.db_manager.run_transaction(work)
        except pg_errors.UniqueViolation as e:
            raise DuplicateUser() from e

        logger.info("User registered: %s", username)
        return self._session(user)

    def login_user(self, username: str, password: str) -> dict:
        """
        Authenticate by username or email

        Raises:
            AuthenticationError: Unknown user or wrong password
        """
        if not username or not password:
            raise ValidationError("Username and password are required")
        if not isinstance(username, str) or not isinstance(password, str):
            raise ValidationError("Username and password must be strings")

        with self.db_manager.get_cursor() as cursor:
            cursor.execute(f"""
                SELECT {_USER_COLUMNS}
                FROM users
                WHERE username = %s OR LOWER(email) = LOWER(%s)
                ORDER BY id
                LIMIT 1
            """, (username, username))
            user = row_to_user(cursor.fetchone())

        if user is None or not self.verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid username or password")

        logger.info("User logged in: %s", user.username)
        return self._session(user)

    def get_user_profile(self, user_id: int) -> User:
        """Get user by ID"""
        user_id = parse_positive_id(user_id, 'User ID')

        with self.db_manager.get_cursor() as cursor:
            cursor.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s", (user_id,))
            user = row_to_user(cursor.fetchone())

        if user is None:
            raise UserNotFound("User not found")
        return user

    def update_user_profile(self, user_id: int, first_name: Optional[str] = None,
                            last_name: Optional[str] = None,
                            phone_number: Optional[str] = None) -> User:
        """Update profile fields; ``None`` leaves a field unchanged"""
        user_id = parse_positive_id(user_id, 'User ID')

        fields = {'first_name': first_name, 'last_name': last_name, 'phone_number': phone_number}
        updates = {column: value for column, value in fields.items() if value is not None}
        if not updates:
            raise ValidationError("No fields to update")

        assignments = ', '.join(f"{column} = %s" for column in updates)

        def work(conn):
            with conn.cursor() as cursor:
                cursor.execute(f"""
                    UPDATE users SET {assignments}, updated_at = NOW()
                    WHERE id = %s
                    RETURNING id
                """, (*updates.values(), user_id))
                if not cursor.fetchone():
                    raise UserNotFound("User not found")

        self.db_manager.run_transaction(work)
        return self.get_user_profile(user_id)

    def change_password(self, user_id: int, old_password: str, new_password: str) -> dict:
        """
        Change a user's password after checking the current one

        Raises:
            ValidationError: New password too short or too long
            AuthenticationError: Current password is incorrect
        """
        user_id = parse_positive_id(user_id, 'User ID')

        problems = password_problems(new_password, label="New password")
        if problems:
            raise ValidationError(problems[0])

        user = self.get_user_profile(user_id)
        if (not isinstance(old_password, str)
                or not self.verify_password(old_password, user.password_hash)):
            raise AuthenticationError("Current password is incorrect")

        new_hash = self.hash_password(new_password)

        def work(conn):
            with conn.cursor() as cursor:
                cursor.execute("""
                    UPDATE users SET password_hash = %s, updated_at = NOW()
                    WHERE id = %s
                """, (new_hash, user_id))

        self.db_manager.run_transaction(work)
        logger.info("Password changed for user ID: %s", user_id)
        return {'message': 'Password changed successfully'}
