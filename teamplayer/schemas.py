from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import date, datetime

MemberStatus = Literal["Free", "Occupied"]
AvailabilityStatus = Literal["Free", "Occupied", "Partial"]
Priority = Literal["High", "Medium", "Low"]
MilestoneStatus = Literal["Not Started", "In Progress", "Completed", "Delayed"]
TaskStatus = Literal["To Do", "In Progress", "Completed", "On Hold"]
TaskType = Literal["Small", "Medium", "Large"]
UserRole = Literal["Senior PM", "Junior PM", "Admin", "Guest"]
# Aliased so fields named ``date`` can still be annotated with the type.
IsoDate = date
Weekday = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


# Users

class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    pin: str = Field(min_length=1)
    profile_name: Optional[str] = None
    recovery_answer: Optional[str] = None


class UserUpdate(BaseModel):
    profile_name: Optional[str] = None
    recovery_answer: Optional[str] = None
    role: Optional[UserRole] = None


class UserOut(BaseModel):
    id: int
    username: str
    profile_name: Optional[str] = None
    role: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    class Config:
        from_attributes = True


# Team members

class TeamMemberBase(BaseModel):
    name: str = Field(min_length=1)
    role: str = Field(min_length=1)
    email: str = Field(min_length=1)
    phone: Optional[str] = None
    status: MemberStatus = "Free"
    group_ids: Optional[List[str]] = None


class TeamMemberCreate(TeamMemberBase):
    pass


class TeamMemberUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    role: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    status: Optional[MemberStatus] = None
    group_ids: Optional[List[str]] = None


class TeamMemberOut(TeamMemberBase):
    id: int
    user_id: int
    class Config:
        from_attributes = True


# Projects

class ProjectBase(BaseModel):
    name: str = Field(min_length=1)
    description: str = Field(default="", max_length=500)
    status: str = "Active"
    progress: int = Field(default=0, ge=0, le=100)
    priority: Priority = "Medium"
    start_date: Optional[date] = None
    deadline: Optional[date] = None
    assigned_members: List[int] = []
    group_ids: List[str] = []


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, max_length=500)
    status: Optional[str] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    priority: Optional[Priority] = None
    start_date: Optional[date] = None
    deadline: Optional[date] = None
    group_ids: Optional[List[str]] = None


class ProjectOut(ProjectBase):
    id: int
    user_id: int
    class Config:
        from_attributes = True


# Milestones

class MilestoneBase(BaseModel):
    name: str = Field(min_length=1)
    due_date: date
    status: MilestoneStatus = "Not Started"
    start_date: Optional[date] = None
    payment_date: Optional[date] = None
    payment_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    weekly_meeting_day: Optional[Weekday] = None
    description: Optional[str] = Field(default=None, max_length=500)


class MilestoneCreate(MilestoneBase):
    pass


class MilestoneUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    due_date: Optional[date] = None
    status: Optional[MilestoneStatus] = None
    start_date: Optional[date] = None
    payment_date: Optional[date] = None
    payment_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    weekly_meeting_day: Optional[Weekday] = None
    description: Optional[str] = Field(default=None, max_length=500)


class MilestoneOut(MilestoneBase):
    id: int
    user_id: int
    project_id: int
    created_at: datetime
    updated_at: datetime
    class Config:
        from_attributes = True


# Processes

class ProcessBase(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = Field(default=None, max_length=500)
    task_ids: List[int] = []


class ProcessCreate(ProcessBase):
    pass


class ProcessUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, max_length=500)
    task_ids: Optional[List[int]] = None


class ProcessOut(ProcessBase):
    id: int
    user_id: int
    project_id: int
    created_at: datetime
    updated_at: datetime
    class Config:
        from_attributes = True


# Availability

class AvailabilityBase(BaseModel):
    date: IsoDate
    status: AvailabilityStatus = "Free"
    time_slots: List[str] = []


class AvailabilityCreate(AvailabilityBase):
    member_id: int


class AvailabilityUpdate(BaseModel):
    date: Optional[IsoDate] = None
    status: Optional[AvailabilityStatus] = None
    time_slots: Optional[List[str]] = None


class AvailabilityOut(AvailabilityBase):
    id: int
    user_id: int
    member_id: int
    class Config:
        from_attributes = True


# Personal tasks

class Subtask(BaseModel):
    name: str
    completed: bool = False


class TaskBase(BaseModel):
    name: str = Field(min_length=1)
    task_type: TaskType
    points: Optional[int] = None
    status: TaskStatus = "To Do"
    priority: Priority = "Medium"
    due_date: Optional[date] = None
    category: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    subtasks: List[Subtask] = []
    assigned_to_id: Optional[int] = None
    project_id: Optional[int] = None
    milestone_id: Optional[int] = None
    process_id: Optional[int] = None


class TaskCreate(TaskBase):
    pass


class TaskUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    task_type: Optional[TaskType] = None
    points: Optional[int] = None
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    due_date: Optional[date] = None
    category: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    subtasks: Optional[List[Subtask]] = None
    assigned_to_id: Optional[int] = None
    project_id: Optional[int] = None
    milestone_id: Optional[int] = None
    process_id: Optional[int] = None


class TaskOut(TaskBase):
    id: int
    user_id: int
    points: int
    progress: int
    completion_date: Optional[date] = None
    class Config:
        from_attributes = True


class RunRateOut(BaseModel):
    prr: float
    rprr: float
    status: Literal["Ahead", "Behind", "On Track"]
    completed_points: int
    remaining_points: int
    total_points: int
    days_spent: int
    days_remaining: int
    class Config:
        from_attributes = True
