"""
aleo-agent - account agent for the Aleo network.

Key features:
- Account generation, import and secret-based private-key backup
- Record discovery with ownership and spent-record filtering
- Private / public credit transfers in all four directions
- Program execution, deployment and import resolution
- REST node client over httpx
- Pluggable crypto provider (secp256k1 / AES-GCM reference backend)
"""

__version__ = "0.1.0"
__all__ = [
    "errors",
    "crypto_utils",
    "keys",
    "records",
    "crypto",
    "account",
    "block",
    "chain",
    "scanner",
    "transfer",
    "program",
    "execution",
    "agent",
    "config",
    "logging_config",
]
