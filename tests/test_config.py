"""
Tests for aleo_agent.config — TOML configuration and environment overrides.

Covers:
  - Default values for all dataclass sections
  - NetworkConfig endpoint joining and the local-node preset
  - TOML parsing and section merging
  - Environment variable overrides (precedence over TOML)
  - _merge helper edge cases
  - Missing TOML files
  - AgentConfig.validate
"""

from __future__ import annotations

import os
import tempfile
import textwrap
import unittest
from unittest.mock import patch

from aleo_agent.config import (
    DEFAULT_BASE_URL,
    AgentConfig,
    LoggingConfig,
    NetworkConfig,
    TransferConfig,
    _merge,
    load_config,
)
from aleo_agent.errors import ValidationError


def _load_toml(content: str) -> AgentConfig:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
        f.write(textwrap.dedent(content))
        f.flush()
        cfg = load_config(f.name)
    os.unlink(f.name)
    return cfg


# ═══════════════════════════════════════════════════════════════════
#  Defaults
# ═══════════════════════════════════════════════════════════════════

class TestDefaults(unittest.TestCase):

    def test_network_defaults(self):
        n = NetworkConfig()
        self.assertEqual(n.base_url, "https://api.explorer.aleo.org/v1")
        self.assertEqual(n.network, "testnet3")
        self.assertEqual(n.timeout_seconds, 30.0)

    def test_transfer_defaults(self):
        self.assertEqual(TransferConfig().credits_program, "credits.aleo")

    def test_logging_defaults(self):
        log_cfg = LoggingConfig()
        self.assertEqual(log_cfg.level, "INFO")
        self.assertEqual(log_cfg.format, "human")
        self.assertIsNone(log_cfg.file)

    def test_agent_config_defaults(self):
        cfg = AgentConfig()
        self.assertIsInstance(cfg.network, NetworkConfig)
        self.assertIsInstance(cfg.transfer, TransferConfig)
        self.assertIsInstance(cfg.logging, LoggingConfig)

    def test_sections_not_shared(self):
        a, b = AgentConfig(), AgentConfig()
        a.network.network = "mainnet"
        self.assertEqual(b.network.network, "testnet3")


class TestNetworkConfig(unittest.TestCase):

    def test_endpoint(self):
        self.assertEqual(NetworkConfig().endpoint, f"{DEFAULT_BASE_URL}/testnet3")

    def test_endpoint_trailing_slashes(self):
        n = NetworkConfig(base_url="http://node:3030/", network="/mainnet/")
        self.assertEqual(n.endpoint, "http://node:3030/mainnet")

    def test_local(self):
        self.assertEqual(NetworkConfig.local().base_url, "http://0.0.0.0:3030")
        self.assertEqual(NetworkConfig.local(4040).endpoint, "http://0.0.0.0:4040/testnet3")


# ═══════════════════════════════════════════════════════════════════
#  _merge helper
# ═══════════════════════════════════════════════════════════════════

class TestMerge(unittest.TestCase):

    def test_merge_updates_fields(self):
        n = NetworkConfig()
        _merge(n, {"network": "mainnet", "timeout_seconds": 5.0})
        self.assertEqual(n.network, "mainnet")
        self.assertEqual(n.timeout_seconds, 5.0)

    def test_merge_ignores_unknown_keys(self):
        n = NetworkConfig()
        _merge(n, {"unknown_field": 42})
        self.assertFalse(hasattr(n, "unknown_field"))

    def test_merge_hyphenated_keys(self):
        n = NetworkConfig()
        _merge(n, {"base-url": "http://kebab:3030"})
        self.assertEqual(n.base_url, "http://kebab:3030")

    def test_merge_empty_dict(self):
        t = TransferConfig()
        _merge(t, {})
        self.assertEqual(t.credits_program, "credits.aleo")


# ═══════════════════════════════════════════════════════════════════
#  TOML loading
# ═══════════════════════════════════════════════════════════════════

class TestLoadConfig(unittest.TestCase):

    def test_load_no_file(self):
        cfg = load_config(None)
        self.assertEqual(cfg.network.network, "testnet3")

    def test_load_missing_file(self):
        cfg = load_config("/tmp/__nonexistent_aleo_agent__.toml")
        self.assertEqual(cfg.network.base_url, DEFAULT_BASE_URL)

    def test_load_toml_file(self):
        cfg = _load_toml("""\
            [network]
            base_url = "http://localhost:3030"
            network = "mainnet"
            timeout-seconds = 12.5

            [transfer]
            credits_program = "credits_v2.aleo"

            [logging]
            level = "DEBUG"
            format = "json"
            file = "logs/agent.log"
        """)
        self.assertEqual(cfg.network.base_url, "http://localhost:3030")
        self.assertEqual(cfg.network.network, "mainnet")
        self.assertEqual(cfg.network.timeout_seconds, 12.5)
        self.assertEqual(cfg.transfer.credits_program, "credits_v2.aleo")
        self.assertEqual(cfg.logging.level, "DEBUG")
        self.assertEqual(cfg.logging.format, "json")
        self.assertEqual(cfg.logging.file, "logs/agent.log")

    def test_partial_file_keeps_defaults(self):
        cfg = _load_toml("""\
            [logging]
            level = "WARNING"
        """)
        self.assertEqual(cfg.logging.level, "WARNING")
        self.assertEqual(cfg.network.base_url, DEFAULT_BASE_URL)

    def test_unknown_sections_ignored(self):
        cfg = _load_toml("""\
            [wallet]
            name = "main"
        """)
        self.assertEqual(cfg.transfer.credits_program, "credits.aleo")


# ═══════════════════════════════════════════════════════════════════
#  Environment variable overrides
# ═══════════════════════════════════════════════════════════════════

class TestEnvOverrides(unittest.TestCase):

    @patch.dict(os.environ, {"ALEO_AGENT_BASE_URL": "http://env-node:3030"}, clear=False)
    def test_env_base_url(self):
        self.assertEqual(load_config(None).network.base_url, "http://env-node:3030")

    @patch.dict(os.environ, {"ALEO_AGENT_NETWORK": "mainnet"}, clear=False)
    def test_env_network(self):
        self.assertEqual(load_config(None).network.network, "mainnet")

    @patch.dict(os.environ, {"ALEO_AGENT_TIMEOUT": "7"}, clear=False)
    def test_env_timeout_is_float(self):
        cfg = load_config(None)
        self.assertEqual(cfg.network.timeout_seconds, 7.0)
        self.assertIsInstance(cfg.network.timeout_seconds, float)

    @patch.dict(os.environ, {"ALEO_AGENT_LOG_LEVEL": "debug"}, clear=False)
    def test_env_log_level_uppercased(self):
        self.assertEqual(load_config(None).logging.level, "DEBUG")

    @patch.dict(os.environ, {"ALEO_AGENT_LOG_FMT": "json"}, clear=False)
    def test_env_log_format(self):
        self.assertEqual(load_config(None).logging.format, "json")

    @patch.dict(os.environ, {"ALEO_AGENT_LOG_FILE": "/tmp/agent.log"}, clear=False)
    def test_env_log_file(self):
        self.assertEqual(load_config(None).logging.file, "/tmp/agent.log")

    @patch.dict(os.environ, {"ALEO_AGENT_NETWORK": ""}, clear=False)
    def test_env_empty_ignored(self):
        self.assertEqual(load_config(None).network.network, "testnet3")

    @patch.dict(os.environ, {"ALEO_AGENT_NETWORK": "canary"}, clear=False)
    def test_env_wins_over_toml(self):
        cfg = _load_toml("""\
            [network]
            network = "mainnet"
        """)
        self.assertEqual(cfg.network.network, "canary")

    @patch.dict(os.environ, {"ALEO_AGENT_CREDITS_PROGRAM": "credits_v2.aleo"}, clear=False)
    def test_env_credits_program(self):
        self.assertEqual(load_config(None).transfer.credits_program, "credits_v2.aleo")

    @patch.dict(os.environ, {"ALEO_AGENT_TIMEOUT": "soon"}, clear=False)
    def test_env_bad_timeout(self):
        with self.assertRaises(ValidationError):
            load_config(None)


# ═══════════════════════════════════════════════════════════════════
#  Validation
# ═══════════════════════════════════════════════════════════════════

class TestValidate(unittest.TestCase):

    def test_defaults_valid(self):
        cfg = AgentConfig()
        self.assertIs(cfg.validate(), cfg)
        AgentConfig(network=NetworkConfig.local()).validate()

    def test_rejects(self):
        bad = [
            AgentConfig(network=NetworkConfig(base_url="node:3030")),
            AgentConfig(network=NetworkConfig(network="/")),
            AgentConfig(network=NetworkConfig(timeout_seconds=0)),
            AgentConfig(transfer=TransferConfig(credits_program="credits")),
            AgentConfig(logging=LoggingConfig(format="xml")),
        ]
        for cfg in bad:
            with self.assertRaises(ValidationError):
                cfg.validate()


if __name__ == "__main__":
    unittest.main()
