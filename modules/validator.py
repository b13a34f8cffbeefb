'''
Author:     Suraj Panwar
LinkedIn:   https://www.linkedin.com/in/surajpanwar26/

Copyright (C) 2024 Suraj Panwar

License:    GNU Affero General Public License
            https://www.gnu.org/licenses/agpl-3.0.en.html
            
GitHub:     https://github.com/GodsScion/Auto_job_applier_linkedIn

version:    24.12.29.12.30
'''

import os


__validation_file_path = ""

def check_int(var: int, var_name: str, min_value: int=0) -> bool | TypeError | ValueError:
    if isinstance(var, bool) or not isinstance(var, int): raise TypeError(f'The variable "{var_name}" in "{__validation_file_path}" must be an Integer!\nReceived "{var}" of type "{type(var)}" instead!\n\nSolution:\nPlease open "{__validation_file_path}" and update "{var_name}" to be an Integer.\nExample: `{var_name} = 10`\n\nNOTE: Do NOT surround Integer values in quotes ("10")X !\n\n')
    if var < min_value: raise ValueError(f'The variable "{var_name}" in "{__validation_file_path}" expects an Integer greater than or equal to `{min_value}`! Received `{var}` instead!\n\nSolution:\nPlease open "{__validation_file_path}" and update "{var_name}" accordingly.')
    return True

def check_float(var: float, var_name: str, min_value: float=0.0, allow_none: bool=False, exclusive_min: bool=False) -> bool | TypeError | ValueError:
    if var is None and allow_none: return True
    if isinstance(var, bool) or not isinstance(var, (int, float)): raise TypeError(f'The variable "{var_name}" in "{__validation_file_path}" must be a Number!\nReceived "{var}" of type "{type(var)}" instead!\n\nSolution:\nPlease open "{__validation_file_path}" and update "{var_name}" to be a Number.\nExample: `{var_name} = 1.5`\n\n')
    if var < min_value or (exclusive_min and var == min_value): raise ValueError(f'The variable "{var_name}" in "{__validation_file_path}" expects a Number greater than {"" if exclusive_min else "or equal to "}`{min_value}`! Received `{var}` instead!')
    return True

def check_boolean(var: bool, var_name: str) -> bool | ValueError:
    if var is True or var is False: return True
    raise ValueError(f'The variable "{var_name}" in "{__validation_file_path}" expects a Boolean input `True` or `False`, not "{var}" of type "{type(var)}" instead!\n\nSolution:\nPlease open "{__validation_file_path}" and update "{var_name}" to either `True` or `False` (case-sensitive, T and F must be CAPITAL/uppercase).\nExample: `{var_name} = True`\n\nNOTE: Do NOT surround Boolean values in quotes ("True")X !\n\n')

def check_string(var: str, var_name: str, options: list=[], min_length: int=0) -> bool | TypeError | ValueError:
    if not isinstance(var, str): raise TypeError(f'Invalid input for {var_name}. Expecting a String!')
    if min_length > 0 and len(var.strip()) < min_length: raise ValueError(f'Invalid input for {var_name}. Expecting a String of length at least {min_length}!')
    if len(options) > 0 and var not in options: raise ValueError(f'Invalid input for {var_name}. Expecting a value from {options}, not {var}!')
    return True

def check_url(var: str, var_name: str) -> bool | TypeError | ValueError:
    check_string(var, var_name, min_length=1)
    if not var.startswith(("http://", "https://")): raise ValueError(f'Invalid input for {var_name}. Expecting a URL starting with "http://" or "https://", not "{var}"!')
    return True



def validate_settings() -> None | ValueError | TypeError:
    '''
    Validates all variables in the `/config/settings.py` file.
    '''
    from config.settings import (
        logs_folder_path, verbose_logging,
        ai_request_timeout, ai_max_attempts, ai_base_delay, ai_max_delay,
        network_max_attempts, network_base_delay, ui_max_attempts, ui_retry_delay,
        click_gap, smooth_scroll, abort_retry_on_interrupt, worker_join_grace,
    )
    global __validation_file_path
    __validation_file_path = "config/settings.py"

    check_string(logs_folder_path, "logs_folder_path", min_length=1)
    check_boolean(verbose_logging, "verbose_logging")

    check_float(ai_request_timeout, "ai_request_timeout", exclusive_min=True)
    check_int(ai_max_attempts, "ai_max_attempts", 1)
    check_float(ai_base_delay, "ai_base_delay")
    check_float(ai_max_delay, "ai_max_delay", allow_none=True)

    check_int(network_max_attempts, "network_max_attempts", 1)
    check_float(network_base_delay, "network_base_delay")
    check_int(ui_max_attempts, "ui_max_attempts", 1)
    check_float(ui_retry_delay, "ui_retry_delay")
    check_int(click_gap, "click_gap", 0)
    check_boolean(smooth_scroll, "smooth_scroll")

    check_boolean(abort_retry_on_interrupt, "abort_retry_on_interrupt")
    check_float(worker_join_grace, "worker_join_grace")


def validate_session_values(base_url: str, api_key: str, model_name: str) -> None | ValueError | TypeError:
    '''
    Validates the AI connection values read from the environment (`.env`).
    '''
    global __validation_file_path
    __validation_file_path = ".env"

    check_url(base_url, "BASE_URL")
    check_string(api_key, "API_KEY", min_length=1)
    check_string(model_name, "MODEL", min_length=1)


def validate_config() -> bool | ValueError:
    '''
    Runs all the checks and reports every problem at once.
    '''
    errors = []

    try:
        validate_settings()
    except (ValueError, TypeError) as e:
        errors.append(f"settings.py: {e}")

    try:
        from config.settings import logs_folder_path
        check_directory_writable(logs_folder_path, "logs_folder_path")
    except (ValueError, TypeError) as e:
        errors.append(f"settings.py: {e}")

    if errors:
        error_message = "Configuration validation failed:\n" + "\n".join(errors)
        raise ValueError(error_message)
    return True


def check_directory_writable(path: str, var_name: str) -> bool:
    '''
    Validates that a directory exists and is writable.
    Returns True if writable, raises ValueError if not.
    '''
    # Get directory from path (in case it's a file path)
    dir_path = os.path.dirname(path) if os.path.basename(path) else path
    
    if not dir_path:
        dir_path = '.'
    
    if not os.path.exists(dir_path):
        try:
            os.makedirs(dir_path, exist_ok=True)
        except OSError as e:
            raise ValueError(f'Cannot create directory for "{var_name}": {e}')
    
    if not os.access(dir_path, os.W_OK):
        raise ValueError(f'Directory is not writable for "{var_name}": "{dir_path}"')
    
    return True
