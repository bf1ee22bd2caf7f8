"""Models capturing like relations on posts."""

from sqlalchemy import BigInteger, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from community_service.db.session import Base


class PostLike(Base):
    """A viewer's like on a post.

    Rows are only ever inserted or deleted, never updated.
    """

    __tablename__ = "post_like"
    __table_args__ = (Index("ix_post_like_account_id", "account_id"),)

    # Composite primary key prevents duplicate likes from the same viewer.
    post_id: Mapped[int] = mapped_column(Integer, ForeignKey("post.id"), primary_key=True)
    account_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
