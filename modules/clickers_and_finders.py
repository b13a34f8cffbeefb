'''
Author:     Suraj Panwar
LinkedIn:   https://www.linkedin.com/in/surajpanwar/

Copyright (C) 2024 Suraj Panwar

License:    GNU Affero General Public License
            https://www.gnu.org/licenses/agpl-3.0.en.html
            
GitHub:     https://github.com/surajpanwar/Auto_job_applier_linkedIn

version:    26.01.20.5.08
'''

from config.settings import click_gap, smooth_scroll
from modules.helpers import buffer, print_lg
from modules.fault_tolerance import OperationError, safe_execute
from modules.retry_policy import RetryPolicy, run_ui_operation
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.remote.webdriver import WebDriver


# Finder Functions
def find_element(driver: WebDriver, by: str, locator: str, message: str = "", policy: RetryPolicy | None = None) -> WebElement | None:
    '''
    Finds the element located by `by` and `locator`, trying again on failure.
    - Returns `WebElement` if found, else `None`.
    - `message` is printed when every attempt failed.
    '''
    outcome = run_ui_operation(lambda: driver.find_element(by, locator), f"find element {locator}", policy=policy)
    if outcome.ok:
        return outcome.value
    print_lg(f"{message or 'Element not found'}! Gave up on '{locator}' after {outcome.attempt} attempts: {outcome.message}")
    return None


def find_by_xpath(driver: WebDriver, xpath: str, message: str = "", policy: RetryPolicy | None = None) -> WebElement | None:
    return find_element(driver, By.XPATH, xpath, message, policy)


# Click Functions
def click(driver: WebDriver, by: str, locator: str, policy: RetryPolicy | None = None, scroll: bool = True) -> bool:
    '''
    Clicks the element located by `by` and `locator`, trying again on failure.
    - Hidden or disabled elements count as a failed attempt.
    - Falls back to a JavaScript click when a normal click is intercepted.
    - Returns `True` if clicked, else `False`.
    '''
    def _click() -> bool:
        element = driver.find_element(by, locator)
        if not element.is_displayed() or not element.is_enabled():
            raise OperationError(f"'{locator}' is not visible or not enabled yet")
        if scroll: scroll_to_view(driver, element)
        try:
            element.click()
        except Exception:
            driver.execute_script("arguments[0].click();", element)
        buffer(click_gap)
        return True

    outcome = run_ui_operation(_click, f"click {locator}", policy=policy)
    if outcome.ok:
        return True
    print_lg(f"Click Failed! Gave up on '{locator}' after {outcome.attempt} attempts: {outcome.message}")
    return False


def wait_for_clickable(driver: WebDriver, by: str, locator: str, timeout: float = 10.0) -> bool:
    '''
    Waits up to `timeout` seconds for the element to be visible and clickable.
    Returns `False` on timeout instead of raising.
    '''
    def _wait() -> bool:
        WebDriverWait(driver, timeout).until(EC.element_to_be_clickable((by, locator)))
        return True
    return safe_execute(_wait, default=False, label=f"wait for '{locator}' to be clickable ({timeout}s)")


def scroll_to_view(driver: WebDriver, element: WebElement, top: bool = False, smooth_scroll: bool = smooth_scroll) -> None:
    '''
    Scrolls the `element` to view.
    - `smooth_scroll` will scroll with smooth behavior.
    - `top` will scroll to the `element` to top of the view.
    '''
    if top:
        return driver.execute_script('arguments[0].scrollIntoView();', element)
    behavior = "smooth" if smooth_scroll else "instant"
    return driver.execute_script('arguments[0].scrollIntoView({block: "center", behavior: "'+behavior+'" });', element)


# Page helpers
def execute_javascript(driver: WebDriver, script: str, *args):
    '''
    Runs `script` in the page. Returns its result, or `None` if it failed.
    '''
    return safe_execute(driver.execute_script, script, *args, default=None, label=f"JavaScript `{script[:60]}`")


def page_contains_text(driver: WebDriver, text: str) -> bool:
    '''
    Checks whether the current page source contains `text`. `False` if the page can't be read.
    '''
    return safe_execute(lambda: text in driver.page_source, default=False, label="page text check")
