"""
Result comparison logic for HTLC conformance testing.

Two hosts agree on a call when they agree on success, on the numeric error
code, on the transfer instruction emitted and on the store digest afterwards.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

EXPECTED = "expected"


@dataclass
class Divergence:
    """A field on which a client disagrees with the reference."""
    field: str
    expected: Any
    actual: Any
    client: str
    reference_client: str
    vector_name: str
    details: Optional[str] = None


@dataclass
class ComparisonResult:
    success: bool
    divergences: List[Divergence]
    clients_compared: List[str]

    @property
    def has_divergences(self) -> bool:
        return len(self.divergences) > 0


def error_code_of(result: Dict[str, Any]) -> int:
    """Numeric error code of a call response; 0 on success."""
    code = result.get("code", result.get("error_code", 0))
    return code if isinstance(code, int) else -1


def transfer_of(result: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    transfer = result.get("transfer")
    if not transfer:
        return None
    return {
        "destination": transfer.get("destination"),
        "amount": transfer.get("amount"),
        "kind": transfer.get("kind"),
    }


class ResultComparator:
    """Compares call results from several hosts against one reference."""

    def __init__(self, reference_client: str = "reference"):
        self.reference_client = reference_client

    def compare_results(
        self,
        results: Dict[str, Dict[str, Any]],
        vector_name: str,
    ) -> ComparisonResult:
        clients = list(results.keys())
        if len(clients) < 2:
            return ComparisonResult(success=True, divergences=[], clients_compared=clients)

        if self.reference_client not in results:
            raise ValueError(f"Reference client '{self.reference_client}' not in results")
        reference = results[self.reference_client]

        divergences: List[Divergence] = []
        for client, result in results.items():
            if client == self.reference_client:
                continue
            divergences.extend(
                self._compare_single(reference, result, client, self.reference_client, vector_name)
            )

        return ComparisonResult(
            success=not divergences,
            divergences=divergences,
            clients_compared=clients,
        )

    def compare_expected(
        self,
        expected: Dict[str, Any],
        results: Dict[str, Dict[str, Any]],
        vector_name: str,
    ) -> ComparisonResult:
        """Check every client against the outcome recorded in the vector."""
        divergences: List[Divergence] = []
        for client, result in results.items():
            divergences.extend(
                self._compare_single(expected, result, client, EXPECTED, vector_name)
            )
        return ComparisonResult(
            success=not divergences,
            divergences=divergences,
            clients_compared=list(results.keys()),
        )

    def _compare_single(
        self,
        reference: Dict[str, Any],
        actual: Dict[str, Any],
        client: str,
        reference_name: str,
        vector_name: str,
    ) -> List[Divergence]:
        divergences = []

        def diverge(field: str, want: Any, got: Any, details: Optional[str] = None) -> None:
            divergences.append(Divergence(
                field=field,
                expected=want,
                actual=got,
                client=client,
                reference_client=reference_name,
                vector_name=vector_name,
                details=details,
            ))

        ref_success = bool(reference.get("success", False))
        act_success = bool(actual.get("success", False))
        if ref_success != act_success:
            diverge("success", ref_success, act_success)

        ref_error = error_code_of(reference)
        act_error = error_code_of(actual)
        if ref_error != act_error:
            diverge(
                "error_code",
                ref_error,
                act_error,
                f"Error code mismatch: expected 0x{ref_error & 0xFFFF:04x}, "
                f"got 0x{act_error & 0xFFFF:04x}",
            )

        ref_transfer = transfer_of(reference)
        act_transfer = transfer_of(actual)
        if ref_transfer != act_transfer:
            diverge("transfer", ref_transfer, act_transfer, "Transfer instruction mismatch")

        ref_digest = reference.get("state_digest")
        act_digest = actual.get("state_digest")
        if ref_digest and act_digest and ref_digest != act_digest:
            diverge("state_digest", ref_digest, act_digest, "State digest mismatch after call")

        return divergences

    def compare_state_digests(
        self,
        digests: Dict[str, str],
        vector_name: str,
    ) -> ComparisonResult:
        """Compare store digests, e.g. right after loading a pre-state."""
        clients = list(digests.keys())
        if len(clients) < 2:
            return ComparisonResult(success=True, divergences=[], clients_compared=clients)

        reference_digest = digests.get(self.reference_client)
        if not reference_digest:
            raise ValueError(f"Reference client '{self.reference_client}' not in digests")

        divergences = [
            Divergence(
                field="state_digest",
                expected=reference_digest,
                actual=digest,
                client=client,
                reference_client=self.reference_client,
                vector_name=vector_name,
                details="State digest mismatch",
            )
            for client, digest in digests.items()
            if client != self.reference_client and digest != reference_digest
        ]
        return ComparisonResult(
            success=not divergences,
            divergences=divergences,
            clients_compared=clients,
        )
