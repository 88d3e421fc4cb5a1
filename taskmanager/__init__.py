"""Task Manager API: task management with JWT authentication."""
