# corehunter/optimization/listeners.py

import logging

logger = logging.getLogger(__name__)


class CoreHunterListener:
    """
    Receives progress events of CoreHunter.execute() and CoreHunter.normalize().

    preprocessing_started() and preprocessing_stopped() fire exactly once per
    top-level call; the stop event also fires when preprocessing fails. The
    search events fire for every search run, including the preliminary runs of
    normalization, which may run on worker threads. All methods do nothing by
    default.
    """

    def preprocessing_started(self, message: str):
        pass

    def preprocessing_stopped(self, message: str):
        pass

    def search_started(self, search_name: str):
        pass

    def new_best_solution(self, search_name: str, value: float, step: int):
        pass

    def search_stopped(self, search_name: str, result):
        pass


class LoggingListener(CoreHunterListener):
    """Forwards all events to the logging module."""

    def __init__(self, log: logging.Logger = None, level: int = logging.INFO):
        self.log = log or logger
        self.level = level

    def preprocessing_started(self, message):
        self.log.log(self.level, "Preprocessing started: %s", message)

    def preprocessing_stopped(self, message):
        self.log.log(self.level, "Preprocessing finished: %s", message)

    def search_started(self, search_name):
        self.log.log(self.level, "Search '%s' started", search_name)

    def new_best_solution(self, search_name, value, step):
        self.log.log(logging.DEBUG, "Search '%s': new best value %.6f at step %d", search_name, value, step)

    def search_stopped(self, search_name, result):
        self.log.log(self.level, "Search '%s' stopped after %d steps (%.2f s), best value %.6f",
                     search_name, result.steps, result.runtime, result.value)
