"""Allow ``python -m create_modernfw_app``."""

from create_modernfw_app.cli import main

if __name__ == "__main__":
    main()
