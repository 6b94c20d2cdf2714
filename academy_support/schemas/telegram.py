"""
Telegram Bot API update payloads
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from academy_support.core.config import settings


class TelegramUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    is_bot: bool = False
    first_name: Optional[str] = None
    username: Optional[str] = None

    @property
    def display_name(self) -> Optional[str]:
        return self.username or self.first_name


class TelegramChat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    type: Optional[str] = None


class TelegramMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_id: int
    chat: TelegramChat
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    text: Optional[str] = Field(default=None, max_length=settings.MAX_INBOUND_TEXT_LENGTH)
    caption: Optional[str] = Field(default=None, max_length=settings.MAX_INBOUND_TEXT_LENGTH)


class TelegramCallbackQuery(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    from_user: TelegramUser = Field(alias="from")
    message: Optional[TelegramMessage] = None
    data: Optional[str] = Field(default=None, max_length=64)


class TelegramUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: Optional[TelegramMessage] = None
    callback_query: Optional[TelegramCallbackQuery] = None
