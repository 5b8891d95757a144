"""R2 settings for the shared object-store price cache.

NEVER log credentials: R2Settings keeps them out of its repr.
"""
import os
from dataclasses import dataclass, field

# Values copied from .env.example that were never filled in
PLACEHOLDER_VALUES = frozenset({
    'your-bucket-name',
    'your-access-key-id',
    'your-secret-access-key',
})
PLACEHOLDER_ACCOUNT = 'YOUR_ACCOUNT_ID'


@dataclass(frozen=True)
class R2Settings:
    endpoint: str = ''
    bucket: str = ''
    access_key: str = field(default='', repr=False)
    secret_key: str = field(default='', repr=False)
    # Optional namespace for all cache keys, e.g. 'zakat-engine/'
    prefix: str = ''
    enabled: bool = False

    @classmethod
    def from_env(cls) -> 'R2Settings':
        return cls(
            endpoint=os.environ.get('R2_ENDPOINT_URL', ''),
            bucket=os.environ.get('R2_BUCKET', ''),
            access_key=os.environ.get('R2_ACCESS_KEY_ID', ''),
            secret_key=os.environ.get('R2_SECRET_ACCESS_KEY', ''),
            prefix=os.environ.get('R2_PREFIX', ''),
            enabled=os.environ.get('R2_ENABLED', '').lower() in ('1', 'true', 'yes'),
        )

    @property
    def has_credentials(self) -> bool:
        values = (self.endpoint, self.bucket, self.access_key, self.secret_key)
        if not all(values):
            return False
        if PLACEHOLDER_VALUES.intersection(values) or PLACEHOLDER_ACCOUNT in self.endpoint:
            return False
        return True

    @property
    def usable(self) -> bool:
        return self.enabled and self.has_credentials
