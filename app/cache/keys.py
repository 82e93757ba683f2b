TASKS_KEY_VERSION = "v1"


def user_tasks_key(user_id: int) -> str:
    """Cache key for a user's task list: ``user:<uid>:tasks:v1``."""
    return f"user:{int(user_id)}:tasks:{TASKS_KEY_VERSION}"
