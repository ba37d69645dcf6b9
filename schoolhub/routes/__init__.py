from .academics import classes_router, grades_router, lessons_router, subjects_router
from .assessments import assignments_router, exams_router, results_router
from .attendance import router as attendance_router
from .auth import router as auth_router
from .finance import fees_router, payments_router, student_fees_router
from .notices import announcements_router, events_router
from .people import parents_router, students_router, teachers_router
from .schools import dashboard_router, schools_router

routers = (
    auth_router,
    schools_router,
    students_router,
    teachers_router,
    parents_router,
    grades_router,
    classes_router,
    subjects_router,
    lessons_router,
    exams_router,
    assignments_router,
    results_router,
    attendance_router,
    fees_router,
    student_fees_router,
    payments_router,
    events_router,
    announcements_router,
    dashboard_router,
)

__all__ = ["routers"]
