# SPDX-License-Identifier: MIT

from plangrid import state as app_state
from plangrid.initialize import initialize
from plangrid.terminal.app import run


def main() -> None:
    config = initialize()
    app_state.set_configuration(config)
    run()


if __name__ == "__main__":
    main()
