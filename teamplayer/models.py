from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    TypeDecorator,
)
from sqlalchemy.orm import relationship

from .database import Base
from .helpers import dump_id_list, parse_id_list


def utcnow():
    return datetime.now(timezone.utc)


class SerializedList(TypeDecorator):
    """List stored as JSON text. Unreadable content loads as an empty list."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return dump_id_list(value)

    def process_result_value(self, value, dialect):
        return parse_id_list(value)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    pin_hash = Column(String, nullable=False)
    profile_name = Column(String)
    recovery_answer = Column(String)
    role = Column(String, default="Senior PM")
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    team_members = relationship("TeamMember", back_populates="owner")
    projects = relationship("Project", back_populates="owner")
    tasks = relationship("PersonalTask", back_populates="owner")


class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False)
    phone = Column(String)
    email = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default="Free")
    group_ids = Column(SerializedList)

    owner = relationship("User", back_populates="team_members")
    availability = relationship("Availability", back_populates="member", cascade="all, delete")


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String, nullable=False, default="Active")
    progress = Column(Integer, nullable=False, default=0)
    priority = Column(String, nullable=False, default="Medium")
    start_date = Column(Date)
    deadline = Column(Date)
    assigned_members = Column(SerializedList)
    group_ids = Column(SerializedList)

    owner = relationship("User", back_populates="projects")
    milestones = relationship("Milestone", back_populates="project", cascade="all, delete")
    processes = relationship("Process", back_populates="project", cascade="all, delete")


class Milestone(Base):
    __tablename__ = "milestones"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    start_date = Column(Date)
    due_date = Column(Date, nullable=False)
    payment_date = Column(Date)
    payment_percentage = Column(Float)
    weekly_meeting_day = Column(String)
    description = Column(Text)
    status = Column(String, nullable=False, default="Not Started")
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    project = relationship("Project", back_populates="milestones")


class Process(Base):
    __tablename__ = "processes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    task_ids = Column(SerializedList)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    project = relationship("Project", back_populates="processes")


class Availability(Base):
    __tablename__ = "availability"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("team_members.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    status = Column(String, nullable=False, default="Free")
    time_slots = Column(SerializedList)

    member = relationship("TeamMember", back_populates="availability")


class PersonalTask(Base):
    __tablename__ = "personal_tasks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    due_date = Column(Date)
    priority = Column(String, nullable=False, default="Medium")
    category = Column(String)
    status = Column(String, nullable=False, default="To Do")
    notes = Column(Text)
    task_type = Column(String, nullable=False)
    points = Column(Integer, nullable=False)
    subtasks = Column(SerializedList)
    progress = Column(Integer, nullable=False, default=0)
    completion_date = Column(Date)

    assigned_to_id = Column(Integer, ForeignKey("team_members.id", ondelete="SET NULL"), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    milestone_id = Column(Integer, ForeignKey("milestones.id", ondelete="SET NULL"), nullable=True)
    process_id = Column(Integer, ForeignKey("processes.id", ondelete="SET NULL"), nullable=True)

    owner = relationship("User", back_populates="tasks")
