"""
Configuration management for the HTLC conformance harness.
"""

import os
from dataclasses import dataclass, field
from typing import Dict


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("true", "1", "yes")


@dataclass
class ClientConfig:
    """One host environment exposing the conformance HTTP surface."""
    name: str
    endpoint: str
    enabled: bool = True
    timeout: float = 30.0


@dataclass
class HarnessConfig:
    """Main configuration for the harness."""
    clients: Dict[str, ClientConfig] = field(default_factory=dict)
    reference_client: str = "reference"

    vector_dir: str = "vectors"
    result_dir: str = "results"

    stop_on_first_failure: bool = False
    verbose: bool = False
    # Also check every client against the outcome recorded in the vector.
    check_expected: bool = True

    request_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "HarnessConfig":
        """Load configuration from environment variables."""
        config = cls()
        timeout = float(os.environ.get("REQUEST_TIMEOUT", config.request_timeout))
        config.request_timeout = timeout

        config.clients = {
            "reference": ClientConfig(
                name="Reference",
                endpoint=os.environ.get("REFERENCE_ENDPOINT", "http://localhost:8081"),
                timeout=timeout,
            ),
            "candidate": ClientConfig(
                name="Candidate",
                endpoint=os.environ.get("CANDIDATE_ENDPOINT", "http://localhost:8082"),
                timeout=timeout,
            ),
        }

        config.vector_dir = os.environ.get("VECTOR_DIR", config.vector_dir)
        config.result_dir = os.environ.get("RESULT_DIR", config.result_dir)
        config.verbose = _env_flag("VERBOSE")
        config.stop_on_first_failure = _env_flag("STOP_ON_FIRST_FAILURE")
        return config

    def get_enabled_clients(self) -> Dict[str, ClientConfig]:
        """Get only enabled client configurations."""
        return {
            name: client
            for name, client in self.clients.items()
            if client.enabled
        }
