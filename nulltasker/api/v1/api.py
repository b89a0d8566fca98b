from fastapi import APIRouter

from nulltasker.api.v1.endpoints import (
    admin_projects,
    admin_system,
    admin_users,
    auth,
    health,
    projects,
    settings,
    tasks,
    users,
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(users.router, tags=["users"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])

# Resource endpoints
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])

# System administrator endpoints
api_router.include_router(admin_users.router, prefix="/admin/users", tags=["admin"])
api_router.include_router(admin_projects.router, prefix="/admin/projects", tags=["admin"])
api_router.include_router(admin_system.router, prefix="/admin", tags=["admin"])
