import os


def get_env_or_default(env_var, default, value_type=str):
    """
    Helper function to get the value from an environment variable or return the default value.
    Supports single values or comma separated lists.
    """
    value = os.getenv(env_var, None)
    if value is not None:
        if value_type == list:
            return value.split(",")
        return value_type(value)
    return default
