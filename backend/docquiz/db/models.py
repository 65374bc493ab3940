from sqlalchemy import (
    Column, String, Text, Integer, BigInteger, ForeignKey, JSON, Boolean, DateTime, UniqueConstraint, func
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class User(Base):
    __tablename__ = "users"
    id            = Column(String, primary_key=True)     # uuid4()
    email         = Column(String, nullable=False, unique=True)
    full_name     = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at    = Column(DateTime, server_default=func.now())

    documents = relationship(
        "Document",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True
    )


class Document(Base):
    __tablename__ = "documents"
    id          = Column(String, primary_key=True)       # uuid4()
    user_id     = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title       = Column(String, nullable=False)
    file_name   = Column(String, nullable=False)
    file_type   = Column(String, nullable=False, default="")
    file_size   = Column(BigInteger, nullable=False, default=0)
    content     = Column(Text, nullable=False)             # immutable after creation
    summary     = Column(Text, nullable=True)              # encoded summary blob
    processed   = Column(Boolean, nullable=False, default=False)
    upload_date = Column(DateTime, nullable=False, server_default=func.now())

    owner = relationship(
        "User",
        back_populates="documents"
    )
    quizzes = relationship(
        "Quiz",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True
    )


class Quiz(Base):
    __tablename__ = "quizzes"
    __table_args__ = (
        UniqueConstraint("document_id", "user_id", name="uq_quizzes_document_user"),
    )
    id          = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(String, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    user_id     = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    questions   = Column(JSON, nullable=False, default=list)  # ordered list of question dicts
    created_at  = Column(DateTime, server_default=func.now())
    updated_at  = Column(DateTime, server_default=func.now(), onupdate=func.now())

    document = relationship(
        "Document",
        back_populates="quizzes"
    )
