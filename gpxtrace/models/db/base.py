from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, MappedAsDataclass, mapped_column


class Base:
    class NoID(MappedAsDataclass, DeclarativeBase):
        pass

    class Sequential(NoID):
        __abstract__ = True

        # sqlite only auto-increments INTEGER PRIMARY KEY columns
        id: Mapped[int] = mapped_column(
            BigInteger().with_variant(Integer, 'sqlite'),
            init=False,
            nullable=False,
            primary_key=True,
        )
