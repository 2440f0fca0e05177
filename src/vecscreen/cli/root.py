from vecscreen.cli import index, program, screen # noqa: F401 registers the subcommands


def run():
    program.run()


if __name__ == "__main__":
    run()
