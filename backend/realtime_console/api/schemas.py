from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatCompletionRequest(BaseModel):
    messages: list[ChatMessage]
    stream: bool = True


class HistoryItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "user"
    content: str | None = None


class ImageAnalysisRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str | None = None
    image: str | None = None
    conversation_history: list[HistoryItem] = Field(default_factory=list, alias="conversationHistory")
    stream: bool = True
