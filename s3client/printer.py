import dataclasses
import json

import click
import yaml
from tabulate import tabulate


def _plain(data):
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return dataclasses.asdict(data)
    if isinstance(data, list):
        return [_plain(item) for item in data]
    return data


def format_output(data, fmt):
    data = _plain(data)
    if fmt == 'json':
        click.echo(json.dumps(data, indent=2))
    elif fmt == 'yaml':
        click.echo(yaml.safe_dump(data, sort_keys=False))
    elif fmt == 'table':
        if isinstance(data, list) and data and isinstance(data[0], dict):
            click.echo(tabulate(data, headers='keys'))
        elif isinstance(data, dict):
            click.echo(tabulate(data.items(), headers=['key', 'value']))
        else:
            click.echo(str(data))
    else:
        click.echo(data)
