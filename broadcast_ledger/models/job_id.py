"""Job identifiers accepted by the log broadcast ledger.

Two identifier schemes coexist: jobs created before the v2 job pipeline are
keyed by a UUID, newer jobs by a 32-bit integer. A record carries exactly one
of them, and which one decides the storage column.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StrictInt

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


class UnrecognisedJobIDError(TypeError):
    """Raised for a job identifier outside the two known schemes. Indicates a caller bug."""


class LegacyJobID(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: UUID

    def __str__(self) -> str:
        return str(self.value)


class JobIDV2(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: StrictInt = Field(..., ge=INT32_MIN, le=INT32_MAX)

    def __str__(self) -> str:
        return str(self.value)


JobID = LegacyJobID | JobIDV2


def job_id_column(job_id: object) -> str:
    if isinstance(job_id, LegacyJobID):
        return "job_id"
    if isinstance(job_id, JobIDV2):
        return "job_id_v2"
    raise UnrecognisedJobIDError(f"unrecognised type for job id: {type(job_id).__name__}")
