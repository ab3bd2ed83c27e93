from pydantic import BaseModel, Field
from typing import Optional

from ..signing import UNRECOVERABLE_SIGNATURE, Signature


class TransferRequest(BaseModel):
    sender: str
    destination: str
    amount: int = Field(ge=0)


class RecipientRequest(BaseModel):
    caller: str
    recipient: str


class EmergencyWithdrawRequest(BaseModel):
    """Either `signature` (65-byte hex) or all of v, r, s."""
    owner: str
    deadline: int = Field(ge=0)
    signature: Optional[str] = None
    v: Optional[int] = None
    r: Optional[str] = None
    s: Optional[str] = None

    def to_signature(self) -> Signature:
        """
        Decode the submitted signature.

        Components that are present but undecodable become a signature that
        recovers to nobody, so the ledger still reports blacklisting and
        expiry ahead of the signature mismatch.
        """
        if not self.signature and (self.v is None or self.r is None or self.s is None):
            raise ValueError("signature or v, r, s required")
        try:
            if self.signature:
                return Signature.from_hex(self.signature)
            return Signature.from_components(self.v, self.r, self.s)
        except ValueError:
            return UNRECOVERABLE_SIGNATURE
