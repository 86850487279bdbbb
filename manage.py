#!/usr/bin/env python
import click

from robot_webhooks import create_app
from robot_webhooks.plugins import PLUGINS


@click.group()
def cli():
    pass

@click.command()
@click.option("--host", default="127.0.0.1", help="Interface to listen on")
@click.option("--port", default=3000, type=int, help="Port to listen on")
@click.option("--config", default=None, help="Config class name, like 'development'")
def run(host, port, config):
    "Runs the webhook server"
    app = create_app(config=config)
    app.run(host=host, port=port)


@click.command()
def apps():
    "Lists the apps that can be loaded with the APPS setting"
    for name in sorted(PLUGINS):
        click.echo(name)


cli.add_command(run)
cli.add_command(apps)


if __name__ == "__main__":
    cli()
