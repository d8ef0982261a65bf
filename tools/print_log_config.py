"""Print the effective logging configuration as JSON.

Reads the same environment variables as ``actionchat.app_logging`` so the
values match what the running service uses.
"""

import json
import sys

from actionchat.app_logging import LogConfig


def get_log_config():
    return LogConfig.from_env().describe()


def main():
    sys.stdout.write(json.dumps(get_log_config(), indent=2) + "\n")


if __name__ == "__main__":
    main()
