import logging

def get_logger(log_path=None):
    logger = logging.getLogger("player-rating")
    logger.setLevel(logging.INFO)

    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")

    if not logger.handlers:
        ch = logging.StreamHandler()
        ch.setFormatter(formatter)
        logger.addHandler(ch)

        # file output only when a run asks for it
        if log_path:
            fh = logging.FileHandler(log_path, mode="a", encoding="utf-8")
            fh.setFormatter(formatter)
            logger.addHandler(fh)

    return logger
