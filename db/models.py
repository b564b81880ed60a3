from sqlalchemy import Column, Integer, Float, Text, JSON
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class Review(Base):
    """One row per (review, named instructor)."""

    __tablename__ = "reviews"

    hash = Column(Text, primary_key=True)
    instructor = Column(Text, primary_key=True)
    term = Column(Text, nullable=False)
    term_name = Column(Text, nullable=False)
    term_number = Column(Integer, nullable=False, index=True)
    subject = Column(Text, nullable=False, index=True)
    number = Column(Text, nullable=False, index=True)
    rating_instructor = Column(Float, nullable=False)
    rating_content = Column(Float, nullable=False)
    rating_teaching = Column(Float, nullable=False)
    rating_grading = Column(Float, nullable=False)
    rating_workload = Column(Float, nullable=False)
    upvote_count = Column(Integer, default=0, nullable=False)
    downvote_count = Column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Review {self.subject} {self.number} {self.instructor!r} "
            f"term={self.term_number}>"
        )


class CourseOffering(Base):
    """A course scheduled in a given term, with its instructor roster."""

    __tablename__ = "course_offerings"

    term = Column(Text, primary_key=True)
    subject = Column(Text, primary_key=True)
    number = Column(Text, primary_key=True)
    term_name = Column(Text, nullable=False)
    term_number = Column(Integer, nullable=False, index=True)
    instructors = Column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<CourseOffering {self.subject} {self.number} term={self.term_number}>"
