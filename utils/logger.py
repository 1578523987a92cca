import logging
import logging.handlers
import queue
import atexit

def get_logger(name: str, level=logging.INFO, log_file: str = None) -> logging.Logger:
    """
    Returns a logger instance configured with a thread-safe QueueHandler for cloud environments.
    Outputs JSON-formatted logs to stdout, and optionally to a file.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        # Thread-safe queue for concurrent request threads
        log_queue = queue.Queue(-1)
        queue_handler = logging.handlers.QueueHandler(log_queue)
        logger.addHandler(queue_handler)

        formatter = logging.Formatter(
            '{"time": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}',
            datefmt="%Y-%m-%d %H:%M:%S"
        )

        # Console handler (stdout for cloud logging)
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        handlers = [console_handler]

        if log_file:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)

        queue_listener = logging.handlers.QueueListener(log_queue, *handlers)
        queue_listener.start()

        # Ensure listener stops cleanly on shutdown
        atexit.register(queue_listener.stop)

    return logger
