"""
follow_manager/models/inventory_row.py

Modelo ORM do snapshot persistido do inventário de follows.

Uma linha por webhook seguidor, com os dados da guild e do canal de destino
desnormalizados. O snapshot de uma guild é sempre substituído por inteiro.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from follow_manager.database import Base


class InventoryRow(Base):
    __tablename__ = "follow_manager_inventory"

    # ID do webhook no Discord, identidade do follow
    webhook_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    guild_id: Mapped[str] = mapped_column(String(64), index=True)
    guild_name: Mapped[str | None] = mapped_column(String(256), nullable=True)

    destination_channel_id: Mapped[str] = mapped_column(String(64))
    destination_channel_name: Mapped[str] = mapped_column(String(256))

    source_guild_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    source_guild_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    source_channel_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    source_channel_name: Mapped[str | None] = mapped_column(String(256), nullable=True)

    # ISO-8601 UTC com milissegundos, sempre do mesmo tamanho:
    # a comparação lexicográfica equivale à cronológica
    refreshed_at: Mapped[str] = mapped_column(String(32))

    def __repr__(self) -> str:
        return (
            f"<InventoryRow webhook_id={self.webhook_id!r} "
            f"destination_channel_id={self.destination_channel_id!r}>"
        )
