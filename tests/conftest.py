import sys
from pathlib import Path

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)
from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from api.main import create_app
from core.settings import Settings
from monitoring.registry import LivenessRegistry

START = 1_700_000_000


class FakeClock:
    """Callable epoch clock that only moves when told to."""

    def __init__(self, now=START):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
        return self.now


def write_keypair(directory, private_key, name="heartbeat"):
    private_path = Path(directory) / f"{name}.pem"
    public_path = Path(directory) / f"{name}.pub.pem"
    private_path.write_bytes(
        private_key.private_bytes(
            encoding=Encoding.PEM,
            format=PrivateFormat.PKCS8,
            encryption_algorithm=NoEncryption(),
        )
    )
    public_path.write_bytes(
        private_key.public_key().public_bytes(
            encoding=Encoding.PEM,
            format=PublicFormat.SubjectPublicKeyInfo,
        )
    )
    return private_path, public_path


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def ed25519_key():
    return ed25519.Ed25519PrivateKey.generate()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(server=True, port=8080, offline_timeout=300, zombie_timeout=3600, trust_forwarded_for=True)


@pytest.fixture
def registry(settings):
    return LivenessRegistry(offline_timeout=settings.offline_timeout, zombie_timeout=settings.zombie_timeout)


@pytest.fixture
def make_client(settings, registry, clock):
    """Build a TestClient around a fresh app; pass ``public_key`` for signed mode."""
    clients = []

    def _make(public_key=None):
        app = create_app(settings, registry=registry, public_key=public_key, clock=clock)
        test_client = TestClient(app, raise_server_exceptions=False)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        test_client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()
