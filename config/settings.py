'''
Author:     Suraj Panwar

            
GitHub:     https://github.com/surajpanwar26

'''


###################################################### CONFIGURE YOUR BOT HERE ######################################################

# >>>>>>>>>>> Logging Settings <<<<<<<<<<<

# Directory where log.txt is written (Sentence after the last "/" is ignored, only the folder is used).
logs_folder_path = "logs/"

# Print DEBUG records (raw AI responses, every retry decision) to console and log file?
verbose_logging = False             # True or False, Note: True or False are case-sensitive


# >>>>>>>>>>> AI Request Settings <<<<<<<<<<<
'''
Note: AI connection details (BASE_URL, API_KEY, MODEL) are NOT configured here.
Put them in a `.env` file in the project folder (see `.env.example`) or export them as environment variables.
'''

# Maximum number of seconds a single AI request may take before it's abandoned and retried
ai_request_timeout = 60             # Only positive numbers. Eg: 30, 60, 90.5

# How many times should an AI request be attempted before falling back to "false"?
ai_max_attempts = 3                 # Only positive Integers Eg: 1,2,3,....

# Base wait in seconds between AI attempts. Wait doubles every attempt: base*2, base*4, ...
ai_base_delay = 1.0                 # 1.0 means waits of 2s then 4s between 3 attempts

# Upper bound on a single wait between AI attempts (None = no cap, wait keeps doubling)
ai_max_delay = None                 # None or a positive number Eg: 30


# >>>>>>>>>>> Network & Browser Retry Settings <<<<<<<<<<<

# Attempts for generic network operations (page loads, downloads, ...) passed through the resilience core
network_max_attempts = 3            # Only positive Integers Eg: 1,2,3,....
network_base_delay = 1.0            # Seconds, doubles every attempt

# Attempts for browser interactions (finding an element, clicking it)
ui_max_attempts = 3                 # Only positive Integers Eg: 1,2,3,....
ui_retry_delay = 1.0                # Fixed wait in seconds between browser interaction attempts

# Set the maximum amount of time allowed to wait between each click in secs
click_gap = 1                       # Enter max allowed secs to wait approximately. (Only Non Negative Integers Eg: 0,1,2,3,....)

# Do you want scrolling to be smooth or instantaneous? (Can reduce performance if True)
smooth_scroll = False               # True or False, Note: True or False are case-sensitive


# >>>>>>>>>>> Cancellation Settings <<<<<<<<<<<

# If a stop is requested while waiting between retries, should the retry loop give up right away?
abort_retry_on_interrupt = False    # False = wait ends early but remaining attempts still run, True = stop retrying immediately
'''
Note: `False` keeps the historic behaviour, the stop request is still remembered so the caller can act on it after the call returns.
'''

# Seconds to wait for a timed out worker to notice the stop request and exit before returning
worker_join_grace = 1.0             # Only non negative numbers. 0 means don't wait at all


############################################################################################################
'''
THANK YOU for using my tool 😊! Wishing you the best in your job hunt 🙌🏻!

Sharing is caring! If you found this tool helpful, please share it with your peers 🥺. Your support keeps this project alive.

Gratefully yours 🙏🏻,
Suraj Panwar
'''
############################################################################################################
