"""Allow ``python -m selfupdater``."""

from selfupdater.main import main

if __name__ == "__main__":
    main()
