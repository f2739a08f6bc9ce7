from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Date as SQLAlchemyDate
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime

Base = declarative_base()


class Project(Base):
    """Construction project."""
    __tablename__ = 'projects'

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    budget = Column(Float, nullable=True)  # Budget at completion, if known up front
    currency = Column(String, default='EUR')
    created_at = Column(DateTime, default=datetime.now)
    start_date = Column(SQLAlchemyDate, nullable=True)
    end_date = Column(SQLAlchemyDate, nullable=True)

    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")
    resources = relationship("Resource", back_populates="project", cascade="all, delete-orphan")
    health_snapshots = relationship("ScheduleHealth", back_populates="project", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}')>"


class Task(Base):
    """Schedule task."""
    __tablename__ = 'tasks'

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey('projects.id'), nullable=False)
    name = Column(String, nullable=False)
    duration_days = Column(Integer, nullable=True)  # Derived from dates when empty
    start_date = Column(SQLAlchemyDate, nullable=True)
    end_date = Column(SQLAlchemyDate, nullable=True)
    actual_start_date = Column(SQLAlchemyDate, nullable=True)
    actual_end_date = Column(SQLAlchemyDate, nullable=True)
    progress = Column(Float, default=0.0)  # 0-100
    status = Column(String, default='not_started')

    project = relationship("Project", back_populates="tasks")
    predecessors = relationship(
        "TaskDependency",
        foreign_keys="[TaskDependency.task_id]",
        back_populates="task",
        cascade="all, delete-orphan"
    )
    assignments = relationship("ResourceAssignment", back_populates="task", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Task(id={self.id}, name='{self.name}', duration={self.duration_days})>"


class TaskDependency(Base):
    """Dependency between tasks."""
    __tablename__ = 'task_dependencies'

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey('tasks.id'), nullable=False)
    predecessor_id = Column(Integer, ForeignKey('tasks.id'), nullable=False)
    dependency_type = Column(String, default='FS')

    task = relationship("Task", foreign_keys=[task_id], back_populates="predecessors")
    predecessor = relationship("Task", foreign_keys=[predecessor_id])

    def __repr__(self):
        return f"<TaskDependency(task_id={self.task_id}, predecessor_id={self.predecessor_id})>"


class Resource(Base):
    """Labour, equipment or material used by a project."""
    __tablename__ = 'resources'

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey('projects.id'), nullable=False)
    name = Column(String, nullable=False)
    resource_type = Column(String, default='labor')
    capacity = Column(Float, default=100.0)
    daily_rate = Column(Float, default=0.0)
    hourly_rate = Column(Float, default=0.0)

    project = relationship("Project", back_populates="resources")
    assignments = relationship("ResourceAssignment", back_populates="resource", cascade="all, delete-orphan")
    costs = relationship("ResourceCost", back_populates="resource", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Resource(id={self.id}, name='{self.name}')>"


class ResourceAssignment(Base):
    """Resource assigned to a task."""
    __tablename__ = 'resource_assignments'

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey('tasks.id'), nullable=False)
    resource_id = Column(Integer, ForeignKey('resources.id'), nullable=False)
    quantity = Column(Float, default=1.0)

    task = relationship("Task", back_populates="assignments")
    resource = relationship("Resource", back_populates="assignments")

    def __repr__(self):
        return f"<ResourceAssignment(task_id={self.task_id}, resource_id={self.resource_id})>"


class ResourceCost(Base):
    """Recorded cost of a resource."""
    __tablename__ = 'resource_costs'

    id = Column(Integer, primary_key=True)
    resource_id = Column(Integer, ForeignKey('resources.id'), nullable=False)
    total_cost = Column(Float, nullable=False, default=0.0)
    description = Column(String, nullable=True)
    recorded_at = Column(DateTime, default=datetime.now)

    resource = relationship("Resource", back_populates="costs")

    def __repr__(self):
        return f"<ResourceCost(resource_id={self.resource_id}, total_cost={self.total_cost})>"


class ScheduleHealth(Base):
    """Last computed health of a project, kept for history charts only."""
    __tablename__ = 'schedule_health'

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey('projects.id'), nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    overall_score = Column(Integer, default=0)
    schedule_score = Column(Integer, default=0)
    cost_score = Column(Integer, nullable=True)
    resource_score = Column(Integer, nullable=True)
    spi = Column(Float, default=0.0)
    cpi = Column(Float, default=0.0)
    schedule_variance = Column(Float, default=0.0)
    cost_variance = Column(Float, default=0.0)
    bac = Column(Float, default=0.0)
    pv = Column(Float, default=0.0)
    ev = Column(Float, default=0.0)
    ac = Column(Float, default=0.0)
    eac = Column(Float, default=0.0)
    etc = Column(Float, default=0.0)
    vac = Column(Float, default=0.0)
    tcpi = Column(Float, default=0.0)

    project = relationship("Project", back_populates="health_snapshots")

    def __repr__(self):
        return f"<ScheduleHealth(project_id={self.project_id}, overall_score={self.overall_score})>"
