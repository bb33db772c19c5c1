from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from purchase_bot.storage.models import DialogueState


class DialogueStateRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_payload(self, chat_id: int) -> str | None:
        """Сериализованное состояние чата или None."""
        stmt = select(DialogueState.state).where(DialogueState.chat_id == chat_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def upsert(self, chat_id: int, payload: str) -> None:
        """Создать или обновить состояние чата."""
        row = self.session.get(DialogueState, chat_id)
        if row is None:
            self.session.add(DialogueState(chat_id=chat_id, state=payload))
        else:
            row.state = payload
        self.session.commit()

    def delete(self, chat_id: int) -> bool:
        """Удалить состояние. True, если запись была."""
        result = self.session.execute(delete(DialogueState).where(DialogueState.chat_id == chat_id))
        self.session.commit()
        return result.rowcount > 0
