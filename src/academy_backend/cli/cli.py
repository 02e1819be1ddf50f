import click

from .admin import admin
from .serve import serve

@click.group()
def cli():
    pass

cli.add_command(serve,"serve")
cli.add_command(admin,"admin")

if __name__ == '__main__':
    cli()
