# Import all models here so Base.metadata sees every table
# (used by init_db and alembic).
from classroom.db.base_class import Base  # noqa: F401
from classroom.models import (  # noqa: F401
    activity_log,
    answer,
    assignment,
    attendance,
    class_student,
    material,
    news_item,
    notification,
    question,
    school_class,
    submission,
    user,
)
