from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.intent.models import Draft, HistoryMessage


class ParseRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(min_length=1, description="Natural-language trading command")
    wallet_address: Optional[str] = Field(default=None, alias="walletAddress", description="Connected wallet, if any")
    recent_history: List[HistoryMessage] = Field(
        default_factory=list,
        alias="recentHistory",
        description="Earlier conversation turns used to resolve follow-ups",
    )
    chain: Optional[str] = Field(default=None, description="Network to assume when the command names none")


class ValidateRequest(BaseModel):
    draft: Draft = Field(description="Draft returned by /parse")


class ExecuteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    draft: Draft = Field(description="Draft returned by /parse")
    wallet_address: str = Field(alias="walletAddress", min_length=1, description="Wallet that will sign the trade")
