from flipledger.testing.fixtures import memory_app, signer  # noqa: F401
