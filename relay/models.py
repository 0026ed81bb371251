from sqlalchemy.orm import declarative_base
from sqlalchemy import BigInteger, Column, Integer, PrimaryKeyConstraint, String, Text

Base = declarative_base()


class Client(Base):
    __tablename__ = "clients"

    id = Column(String, primary_key=True)
    secret = Column(String, nullable=False)
    last_seen = Column(BigInteger, nullable=True)  # epoch ms of latest poll


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (PrimaryKeyConstraint("client_id", "channel"),)

    client_id = Column(String, nullable=False)
    channel = Column(String, nullable=False, index=True)
    last_polled = Column(BigInteger, nullable=True)


class Message(Base):
    __tablename__ = "messages"

    # insertion order; breaks timestamp ties
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False)
    channel = Column(String, nullable=False, index=True)
    sender_id = Column(String, nullable=True)  # NULL for external ingestion
    content = Column(Text, nullable=False)
    timestamp = Column(BigInteger, nullable=False, index=True)
    parent_id = Column(String, nullable=True)
