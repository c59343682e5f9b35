#!/usr/bin/env python3
"""
HTLC Conformance Test Runner

Replays YAML vector suites against a reference and a candidate host over the
conformance HTTP surface (/state/reset, /state/load, /call/execute,
/state/digest) and reports every divergence.
"""

import asyncio
import glob
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiohttp
import click
import yaml

from comparator import ComparisonResult, ResultComparator
from config import ClientConfig, HarnessConfig
from reporter import ConformanceReport, ReportGenerator, SuiteResult, TestResult

logger = logging.getLogger(__name__)


class ConformanceClient:
    """HTTP client for one host environment."""

    def __init__(self, config: ClientConfig):
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None

    async def connect(self) -> None:
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        self.session = aiohttp.ClientSession(timeout=timeout)

    async def close(self) -> None:
        if self.session:
            await self.session.close()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        async with self.session.request(
            method, f"{self.config.endpoint}{path}", **kwargs
        ) as resp:
            return await resp.json()

    async def reset_state(self) -> bool:
        try:
            data = await self._request("POST", "/state/reset")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("[%s] Reset failed: %s", self.config.name, e)
            return False
        return bool(data.get("success", False))

    async def load_state(self, state: Dict[str, Any]) -> Optional[str]:
        """Load a swap store; returns its digest, or None on failure."""
        try:
            data = await self._request("POST", "/state/load", json=state)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("[%s] Load state failed: %s", self.config.name, e)
            return None
        if data.get("success"):
            return data.get("state_digest")
        logger.error("[%s] Load state rejected: %s", self.config.name, data.get("error"))
        return None

    async def get_state_digest(self) -> Optional[str]:
        try:
            data = await self._request("GET", "/state/digest")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("[%s] Get digest failed: %s", self.config.name, e)
            return None
        return data.get("state_digest")

    async def execute_call(self, call: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run one call on the host.

        Args:
            call: ``call_type``, ``caller``, ``timestamp`` and ``payload``

        Returns:
            The host's result JSON with its post-call ``state_digest``; a
            transport failure becomes a failed result with code -1
        """
        try:
            return await self._request("POST", "/call/execute", json=call)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("[%s] Execute call failed: %s", self.config.name, e)
            return {"success": False, "error": str(e), "code": -1}


class ConformanceHarness:
    """Drives every enabled client through the same vectors."""

    def __init__(self, config: HarnessConfig):
        self.config = config
        self.clients: Dict[str, ConformanceClient] = {}
        self.comparator = ResultComparator(reference_client=config.reference_client)
        self.reporter = ReportGenerator(config.result_dir)

    async def setup(self) -> None:
        for name, client_config in self.config.get_enabled_clients().items():
            client = ConformanceClient(client_config)
            await client.connect()
            self.clients[name] = client
            logger.info("Connected to %s at %s", client_config.name, client_config.endpoint)

    async def teardown(self) -> None:
        for client in self.clients.values():
            await client.close()

    async def reset_all(self) -> bool:
        results = await asyncio.gather(*[c.reset_state() for c in self.clients.values()])
        return all(results)

    async def load_state_all(self, state: Dict[str, Any]) -> ComparisonResult:
        """Load identical state into all clients and verify digests match."""
        digests = {}
        for name, client in self.clients.items():
            digest = await client.load_state(state)
            if digest:
                digests[name] = digest
            else:
                logger.error("Failed to load state in %s", name)
        return self.comparator.compare_state_digests(digests, "state_load")

    async def execute_call_all(self, call: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        # Sequential on purpose: each client serializes its own calls anyway.
        results = {}
        for name, client in self.clients.items():
            results[name] = await client.execute_call(call)
        return results

    def _result(self, name: str, start: float, **kwargs: Any) -> TestResult:
        return TestResult(
            vector_name=name,
            suite_name="",
            execution_time_ms=(time.time() - start) * 1000,
            **kwargs,
        )

    async def run_vector(self, vector: Dict[str, Any]) -> TestResult:
        """
        Replay one vector on every client.

        Clients are reset, loaded with ``pre_state`` and sent the call; the
        outcomes are compared with each other and, when enabled, with the
        vector's ``expected`` block.

        Args:
            vector: Parsed YAML vector

        Returns:
            TestResult for the vector
        """
        vector_name = vector.get("name", "unknown")
        start = time.time()

        if vector.get("runnable") is False:
            return self._result(vector_name, start, passed=True, skipped=True)

        try:
            if not await self.reset_all():
                return self._result(vector_name, start, passed=False, error="Failed to reset clients")

            if vector.get("pre_state"):
                loaded = await self.load_state_all(vector["pre_state"])
                if loaded.has_divergences or len(loaded.clients_compared) < len(self.clients):
                    return self._result(
                        vector_name, start, passed=False, comparison=loaded,
                        error="State load divergence",
                    )

            call = (vector.get("input") or {}).get("call")
            if not call:
                return self._result(vector_name, start, passed=True)

            results = await self.execute_call_all(call)
            comparison = self.comparator.compare_results(results, vector_name)
            if self.config.check_expected and vector.get("expected"):
                against = self.comparator.compare_expected(vector["expected"], results, vector_name)
                comparison.divergences.extend(against.divergences)
                comparison.success = comparison.success and against.success

            return self._result(
                vector_name, start, passed=not comparison.has_divergences, comparison=comparison
            )

        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.exception("Error running vector %s", vector_name)
            return self._result(vector_name, start, passed=False, error=str(e))

    async def run_suite(self, suite_path: str) -> SuiteResult:
        """
        Run every vector in one YAML suite.

        Args:
            suite_path: Path to the suite file

        Returns:
            SuiteResult named after the file stem
        """
        suite_name = Path(suite_path).stem
        logger.info("Running suite: %s", suite_name)
        start = time.time()

        with open(suite_path) as f:
            suite = yaml.safe_load(f) or {}

        result = SuiteResult(suite_name=suite_name, execution_time_ms=0.0)
        for vector in suite.get("test_vectors", []):
            test = await self.run_vector(vector)
            test.suite_name = suite_name
            result.test_results.append(test)

            status = "SKIP" if test.skipped else ("PASS" if test.passed else "FAIL")
            logger.info("  [%s] %s", status, test.vector_name)

            if not test.passed and self.config.stop_on_first_failure:
                break

        result.execution_time_ms = (time.time() - start) * 1000
        return result

    async def run_all(self, vector_paths: List[str]) -> ConformanceReport:
        start = time.time()
        suite_results = [await self.run_suite(path) for path in vector_paths]
        return self.reporter.generate_report(
            suite_results=suite_results,
            clients=list(self.clients.keys()),
            reference_client=self.comparator.reference_client,
            execution_time_ms=(time.time() - start) * 1000,
        )


def find_vector_files(vector_dir: str) -> List[str]:
    """Find call-vector YAML suites; pure hash vectors are not replayed here."""
    files: List[str] = []
    for pattern in ("*.yaml", "*.yml"):
        files.extend(glob.glob(os.path.join(vector_dir, "**", pattern), recursive=True))
    return sorted(f for f in files if f"{os.sep}crypto{os.sep}" not in f)


@click.command()
@click.option("--vectors", default=None, help="Path to vectors directory or specific YAML file")
@click.option("--reference-endpoint", default=None, help="Reference host endpoint URL")
@click.option("--candidate-endpoint", default=None, help="Candidate host endpoint URL")
@click.option("--result-dir", default=None, help="Directory to write results")
@click.option("--no-expected", is_flag=True, help="Only compare clients with each other")
@click.option("--verbose", is_flag=True, help="Enable verbose output")
@click.option("--stop-on-failure", is_flag=True, help="Stop on first test failure")
def main(
    vectors: Optional[str],
    reference_endpoint: Optional[str],
    candidate_endpoint: Optional[str],
    result_dir: Optional[str],
    no_expected: bool,
    verbose: bool,
    stop_on_failure: bool,
) -> None:
    """Run HTLC conformance tests."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    config = HarnessConfig.from_env()
    if reference_endpoint:
        config.clients["reference"].endpoint = reference_endpoint
    if candidate_endpoint:
        config.clients["candidate"].endpoint = candidate_endpoint
    if result_dir:
        config.result_dir = result_dir
    if no_expected:
        config.check_expected = False
    if verbose or config.verbose:
        config.verbose = True
        logging.getLogger().setLevel(logging.DEBUG)
    if stop_on_failure:
        config.stop_on_first_failure = True

    vector_dir = vectors or config.vector_dir
    vector_files = [vector_dir] if os.path.isfile(vector_dir) else find_vector_files(vector_dir)
    if not vector_files:
        logger.error("No vector files found in %s", vector_dir)
        sys.exit(1)
    logger.info("Found %d vector files", len(vector_files))

    async def run() -> int:
        harness = ConformanceHarness(config)
        try:
            await harness.setup()
            report = await harness.run_all(vector_files)
            harness.reporter.write_json_report(report)
            harness.reporter.write_summary(report)
            harness.reporter.print_summary(report)
            return 0 if report.total_failed == 0 else 1
        finally:
            await harness.teardown()

    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
