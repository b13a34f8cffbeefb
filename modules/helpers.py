'''
Author:     Suraj Panwar
LinkedIn:   https://www.linkedin.com/in/surajpanwar26/

Copyright (C) 2024 Suraj Panwar

License:    GNU Affero General Public License
            https://www.gnu.org/licenses/agpl-3.0.en.html
            
GitHub:     https://github.com/GodsScion/Auto_job_applier_linkedIn

version:    24.12.29.12.30
'''


# Imports

import os
import logging
import threading

from time import sleep
from random import randint
from datetime import datetime
from pprint import pformat

from config.settings import logs_folder_path, verbose_logging


# Thread-safe logging lock
_log_lock = threading.Lock()

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"



#### Common functions ####

#< Directories related
def make_directories(paths: list[str]) -> None:
    '''
    Function to create missing directories
    '''
    for path in paths:
        path = os.path.expanduser(path) # Expands ~ to user's home directory
        path = path.replace("//","/")
        
        # If path looks like a file path, get the directory part
        if '.' in os.path.basename(path):
            path = os.path.dirname(path)

        if not path:
            continue

        try:
            os.makedirs(path, exist_ok=True)
        except OSError as e:
            print(f'Error while creating directory "{path}": ', e)
#>


#< Logging related
def get_log_path() -> str:
    '''
    Function to replace '//' with '/' for logs path
    '''
    path = logs_folder_path+"/log.txt"
    return path.replace("//","/")


__logs_file_path = get_log_path()


def critical_error_log(possible_reason: str, stack_trace: Exception) -> None:
    '''
    Function to log and print critical errors along with datetime stamp
    '''
    print_lg(possible_reason, stack_trace, datetime.now(), from_critical=True)


def print_lg(*msgs: str | dict, end: str = "\n", pretty: bool = False, flush: bool = False, from_critical: bool = False) -> None:
    '''
    Function to log and print. **Note that, `end` and `flush` parameters are ignored if `pretty = True`**
    Thread-safe implementation.
    '''
    from modules import log_handler

    with _log_lock:
        for message in msgs:
            text = pformat(message) if pretty else str(message)
            print(text, end="\n" if pretty else end, flush=flush)
            try:
                with open(__logs_file_path, 'a+', encoding="utf-8") as file:
                    file.write(text + ("\n" if pretty else end))
            except OSError as file_error:
                if not from_critical:
                    print(f"Warning: Could not write to log file: {file_error}")
            log_handler.publish(text)


def setup_logging(verbose: bool = verbose_logging, log_file: str | None = None) -> logging.Logger:
    '''
    Routes `logging` records of every module to the console, `log.txt` and the log_handler subscribers.
    * Safe to call more than once, handlers are only attached the first time
    * Returns the root logger
    '''
    from modules.log_handler import PublishingHandler

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    if getattr(root, "_hunter_configured", False):
        return root

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    log_file = log_file or __logs_file_path
    make_directories([log_file])

    handlers: list[logging.Handler] = [logging.StreamHandler(), PublishingHandler()]
    try:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    except OSError as e:
        print(f"Warning: Could not open log file {log_file}: {e}")

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root._hunter_configured = True
    return root
#>


def buffer(speed: int=0) -> None:
    '''
    Function to wait within a period of selected random range.
    * Will not wait if input `speed <= 0`
    * Will wait within a random range of 
      - `0.3 to 0.8 secs` if `1 <= speed < 2`
      - `0.6 to 1.2 secs` if `2 <= speed < 3`
      - `1.0 to speed secs` if `3 <= speed`
    '''
    if speed<=0:
        return
    elif speed >= 1 and speed < 2:
        return sleep(randint(3, 8) * 0.1)
    elif speed >= 2 and speed < 3:
        return sleep(randint(6, 12) * 0.1)
    else:
        return sleep(randint(10, max(12, round(speed) * 5)) * 0.1)
