"""Main entry point for the cipher_breaker package."""
from cipher_breaker.cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
