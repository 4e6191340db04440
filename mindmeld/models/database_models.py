"""
SQLAlchemy ORM models for the MindMeld round history store.
Includes pgvector support for embeddings.
"""
from sqlalchemy import Column, Index, Integer, Text
from pgvector.sqlalchemy import Vector

from mindmeld.database import Base
from mindmeld.config import settings


class RoundRecord(Base):
    """
    One finished round, stored with the embedding of
    ``"<userWord> + <aiWord> = <correctGuess>"``.

    Column names are camelCase so the persisted layout matches the
    documented store schema; ids are assigned by the recorder.
    """

    __tablename__ = "round_data"

    id = Column(Integer, primary_key=True, autoincrement=False)
    round_number = Column("roundNumber", Integer, nullable=True)
    user_word = Column("userWord", Text, nullable=False)
    ai_word = Column("aiWord", Text, nullable=False)
    correct_guess = Column("correctGuess", Text, nullable=False)
    vector = Column(Vector(settings.VECTOR_DIMENSION), nullable=False)

    __table_args__ = (
        Index(
            "round_data_vector_idx",
            "vector",
            postgresql_using="hnsw",
            postgresql_ops={"vector": "vector_cosine_ops"},
        ),
    )
