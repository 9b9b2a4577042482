"""Backend transaction-construction client."""

from ordinal_minter.chain.backend.client import BackendClient
from ordinal_minter.chain.backend.models import BroadcastResult, InscriptionPayload, PreparedArtifact

__all__ = ["BackendClient", "BroadcastResult", "InscriptionPayload", "PreparedArtifact"]
