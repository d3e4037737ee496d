# logger_setup.py

import logging
import logging.handlers
import os

from config_loader import load_config

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(config_path='config.json', log_root='runs'):
    """
    Sets up logging for the simulator.

    Configures the dedicated "particle_sim" logger (not the root logger) with a
    console handler and a rotating file handler under <log_root>/<run_id>/.
    Numba and pygame keep their own loggers out of the run log.

    Data Contract:
    - Inputs:
        - config_path (str) - Path to the configuration file.
        - log_root (str) - Directory under which run directories are created.
    - Outputs: The path of the run's log file.
    - Side Effects:
        - Replaces any handlers previously attached to "particle_sim".
        - Creates the run's log directory.
    - Invariants: The config file contains 'run_id'. The optional 'logging'
      section may set 'level', 'format', 'max_bytes' and 'backup_count'.
    """
    config = load_config(config_path)

    run_id = config['run_id']
    log_config = config.get('logging', {})

    logger = logging.getLogger("particle_sim")
    logger.setLevel(log_config.get('level', 'INFO').upper())
    logger.propagate = False

    log_dir = os.path.join(log_root, run_id)
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, 'simulation.log')

    formatter = logging.Formatter(log_config.get('format', DEFAULT_FORMAT))

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=log_config.get('max_bytes', 1024 * 1024),
        backupCount=log_config.get('backup_count', 5)
    )
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    # Re-running setup (tests, restarts) must not stack handlers.
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.info(f"Logging initialized. Run ID: {run_id}. Log file: {log_file}")
    logger.debug(f"Log level: {logging.getLevelName(logger.level)}.")
    return log_file
