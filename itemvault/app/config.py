from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parents[2]
_ENV_FILE = _PROJECT_ROOT / '.env'
if _ENV_FILE.exists():
    load_dotenv(_ENV_FILE)

DEFAULT_SECRET_KEY = 'devsecret-change-me-before-deploying'
MIN_BCRYPT_ROUNDS = 10


@dataclass(slots=True)
class Settings:
    secret_key: str = field(default_factory=lambda: os.getenv('SECRET_KEY', DEFAULT_SECRET_KEY))
    algorithm: str = field(default_factory=lambda: os.getenv('ALGORITHM', 'HS256'))
    access_token_expire_minutes: int = field(default_factory=lambda: int(os.getenv('ACCESS_TOKEN_EXPIRE_MINUTES', 60 * 24)))
    bcrypt_rounds: int = field(default_factory=lambda: int(os.getenv('BCRYPT_ROUNDS', 12)))
    frontend_origin: str = field(default_factory=lambda: os.getenv('FRONTEND_ORIGIN', 'http://localhost:5173'))
    database_url: str = field(default_factory=lambda: os.getenv('DATABASE_URL', ''))
    environment: str = field(default_factory=lambda: os.getenv('ENVIRONMENT', 'development'))
    log_level: str = field(default_factory=lambda: os.getenv('LOG_LEVEL', 'INFO').upper())
    create_schema: bool = field(default_factory=lambda: os.getenv('CREATE_SCHEMA', '1') == '1')
    e2e: bool = field(default_factory=lambda: os.getenv('E2E') == '1')
    private_path_prefixes: tuple[str, ...] = ('/items', '/auth/me')
    allowed_origins: list[str] = field(init=False)

    _package_dir: Path = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._package_dir = Path(__file__).resolve().parents[1]

        if self.bcrypt_rounds < MIN_BCRYPT_ROUNDS:
            msg = f'BCRYPT_ROUNDS must be at least {MIN_BCRYPT_ROUNDS}, got {self.bcrypt_rounds}'
            raise ValueError(msg)
        if self.access_token_expire_minutes <= 0:
            msg = 'ACCESS_TOKEN_EXPIRE_MINUTES must be positive'
            raise ValueError(msg)
        if self.is_production and self.secret_key == DEFAULT_SECRET_KEY:
            msg = 'SECRET_KEY must be changed in production'
            raise ValueError(msg)

        if self.e2e:
            e2e_dir = self._package_dir / '.e2e-db'
            e2e_dir.mkdir(exist_ok=True)
            e2e_db_path = e2e_dir / 'itemvault_e2e.db'
            if e2e_db_path.exists():
                e2e_db_path.unlink()
            self.database_url = f'sqlite+aiosqlite:///{e2e_db_path}'
            self.frontend_origin = 'http://localhost:63343'
        elif not self.database_url:
            self.database_url = f'sqlite+aiosqlite:///{self._package_dir / "itemvault.db"}'

        base_origin = self.frontend_origin.rstrip('/')
        aliases = {
            base_origin,
            base_origin.replace('localhost', '127.0.0.1'),
            base_origin.replace('127.0.0.1', 'localhost'),
        }
        self.allowed_origins = sorted(aliases)

    @property
    def is_production(self) -> bool:
        return self.environment == 'production'


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read from the environment once."""
    return Settings()
