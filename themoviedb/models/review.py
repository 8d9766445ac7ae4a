from sqlalchemy import BigInteger, Column, DateTime, Integer, String, Text
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import declarative_base
from sqlalchemy.schema import CreateIndex, CreateTable

Base = declarative_base()


class MyReviewDB(Base):
    """
    ORM Model - Mapping 1-1 with table 'my_reviews' in Postgres.
    One row per (viewer, movie); inserting again for the same pair replaces it.
    """
    __tablename__ = "my_reviews"

    owner_id = Column(String(128), primary_key=True)
    movie_id = Column(BigInteger, primary_key=True)
    review_id = Column(BigInteger, nullable=False, index=True)
    author_email = Column(String(320), nullable=False)
    rating = Column(Integer, nullable=False)
    text = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False)


def schema_statements() -> list[str]:
    """DDL for the tables above, compiled for Postgres."""
    dialect = postgresql.dialect()
    statements = []
    for table in Base.metadata.sorted_tables:
        statements.append(str(CreateTable(table, if_not_exists=True).compile(dialect=dialect)))
        for index in table.indexes:
            statements.append(str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect)))
    return statements


async def create_schema(pool) -> None:
    async with pool.acquire() as conn:
        for statement in schema_statements():
            await conn.execute(statement)
