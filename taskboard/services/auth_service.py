import hashlib
import hmac
import logging
import re
import secrets

from taskboard.domain.errors import AuthenticationError, FieldProblem, TaskValidationError
from taskboard.domain.task import UserId
from taskboard.domain.user import User
from taskboard.ports.system import Clock, IdProvider
from taskboard.ports.user_repository import UserRepository

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
_PBKDF2_ROUNDS = 260_000
NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6


def hash_password(password: str, salt: str | None = None) -> str:
    """PBKDF2-HMAC-SHA256 z unikalną solą; wynik w formacie `salt$hash`."""
    if salt is None:
        salt = secrets.token_hex(16)
    key = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), _PBKDF2_ROUNDS)
    return f"{salt}${key.hex()}"


def verify_password(password: str, stored: str) -> bool:
    salt, _, _ = stored.partition("$")
    return hmac.compare_digest(hash_password(password, salt), stored)


class AuthService:
    """
    Bramka uwierzytelniania: rejestracja, logowanie, rozwiązywanie tokenu na `user_id`.

    Token jest nieprzezroczysty (`secrets.token_hex(32)`), jedna sesja na logowanie.
    """
    def __init__(self, users: UserRepository, id_provider: IdProvider, clock: Clock) -> None:
        self.users = users
        self.id_provider = id_provider
        self.clock = clock

    def _open_session(self, user: User) -> str:
        token = secrets.token_hex(32)
        self.users.add_session(token, user.user_id, self.clock.now())
        return token

    def register(self, name: str, email: str, password: str) -> tuple[str, User]:
        """
            Zakłada konto i od razu otwiera sesję.

            :raises TaskValidationError: Złe imię, e-mail lub za krótkie hasło.
            :raises UserAlreadyExistsError: E-mail już zarejestrowany.
            :return: (token, user)
        """
        problems = []
        name = (name or "").strip()
        email = (email or "").strip().lower()
        if not 1 <= len(name) <= NAME_MAX_LENGTH:
            problems.append(FieldProblem("name", f"Name must be between 1 and {NAME_MAX_LENGTH} characters"))
        if not _EMAIL_RE.match(email):
            problems.append(FieldProblem("email", "Please provide a valid email"))
        if not password or len(password) < PASSWORD_MIN_LENGTH:
            problems.append(FieldProblem("password", f"Password must be at least {PASSWORD_MIN_LENGTH} characters"))
        if problems:
            raise TaskValidationError.from_problems(problems)

        user = User(
            user_id=UserId(self.id_provider.new_id()),
            email=email,
            name=name,
            password_hash=hash_password(password),
            created_at=self.clock.now(),
        )
        self.users.add(user)
        logger.info("Registered user %s", user.user_id)
        return self._open_session(user), user

    def login(self, email: str, password: str) -> tuple[str, User]:
        """:raises AuthenticationError: Nieznany e-mail lub złe hasło (bez rozróżnienia)."""
        user = self.users.get_by_email((email or "").strip())
        if user is None or not verify_password(password or "", user.password_hash):
            raise AuthenticationError("Invalid credentials")
        return self._open_session(user), user

    def resolve(self, token: str | None) -> UserId:
        """Token -> `user_id`. Brak lub nieznany token -> `AuthenticationError`."""
        if not token:
            raise AuthenticationError("No token, authorization denied")
        user_id = self.users.user_id_for_token(token)
        if user_id is None:
            raise AuthenticationError("Token is not valid")
        return user_id

    def current_user(self, token: str | None) -> User:
        user = self.users.get(self.resolve(token))
        if user is None:
            raise AuthenticationError("Token is not valid")
        return user

    def logout(self, token: str) -> None:
        self.users.remove_session(token)
