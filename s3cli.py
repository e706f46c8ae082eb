import functools
import json
import logging
import sys
from pathlib import Path

import click

from s3client.amzdate import current_timestamp
from s3client.client import S3Client
from s3client.config import config_from_env, load_config
from s3client.errors import S3Error
from s3client.objects import ListObjectsOptions
from s3client.printer import format_output
from s3client.signing import Credentials, SigningParams, build_signing_headers, hash_payload, sign_request


def handle_s3_errors(f):
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except S3Error as e:
            raise click.ClickException(f"{type(e).__name__}: {e}") from e
    return wrapper


@click.group(context_settings=dict(help_option_names=['--help']))
@click.option('--profile', default=None,
              help='Profile name from the config file (default: environment / .env)')
@click.option('--config', 'config_path', default='.config.yaml',
              help='Path to configuration file')
@click.option('--env-file', default='.env', help='Path to .env file used without --profile')
@click.option('--format', 'outfmt', default='json',
              type=click.Choice(['json', 'yaml', 'table']))
@click.option('--verbose', '-v', is_flag=True, help='Log canonical requests and HTTP traffic')
@click.pass_context
def cli(ctx, profile, config_path, env_file, outfmt, verbose):
    """CLI tool for S3-compatible storage with AWS Signature V4."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    try:
        conf = load_config(profile, config_path) if profile else config_from_env(env_file)
    except S3Error as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)

    client = S3Client(conf)
    ctx.call_on_close(client.close)
    ctx.obj = {
        'conf': conf,
        'client': client,
        'outfmt': outfmt,
    }


@cli.command('sign')
@click.argument('method')
@click.argument('path')
@click.option('--header', '-H', 'header_list', multiple=True,
              help="Extra signed header as 'Name: value' (repeatable)")
@click.option('--body-file', type=click.Path(exists=True, dir_okay=False),
              help='File whose content is the request body')
@click.option('--timestamp', type=int, default=None,
              help='Unix seconds to sign with (default: now)')
@click.option('--host', default=None, help='Host header (default: config endpoint host)')
@click.option('--region', default=None, help='Override the configured region')
@click.option('--service', default=None, help='Override the configured service')
@click.pass_context
@handle_s3_errors
def sign_cmd(ctx, method, path, header_list, body_file, timestamp, host, region, service):
    """Print the Authorization header for a request without sending it."""
    conf = ctx.obj['conf']
    auth = ctx.obj['client'].auth
    headers = {}
    for item in header_list:
        name, sep, value = item.partition(':')
        if not sep or not name.strip():
            raise click.BadParameter(f"expected 'Name: value', got {item!r}",
                                     param_hint='--header')
        name = name.strip()
        if name.lower() == 'host':
            host = host or value.strip()
        elif name.lower() not in ('x-amz-date', 'x-amz-content-sha256'):
            headers[name] = value.strip()

    body = Path(body_file).read_bytes() if body_file else None
    if timestamp is None:
        timestamp = current_timestamp()
    payload_hash = hash_payload(body)
    headers.update(build_signing_headers(host or auth.host, timestamp, payload_hash=payload_hash))

    credentials = Credentials(
        access_key=conf.access_key_id,
        secret_key=conf.secret_access_key,
        region=region or conf.region,
        service=service or conf.service,
    )
    authorization = sign_request(credentials, SigningParams(
        method=method.upper(),
        path=path,
        headers=headers,
        body=body,
        timestamp=timestamp,
        payload_hash=payload_hash,
    ))
    format_output(dict(headers, Authorization=authorization), ctx.obj['outfmt'])


@cli.group()
def bucket():
    """Bucket commands."""
    pass


@bucket.command('create')
@click.argument('name')
@click.pass_context
@handle_s3_errors
def bucket_create(ctx, name):
    format_output(ctx.obj['client'].create_bucket(name), ctx.obj['outfmt'])


@bucket.command('delete')
@click.argument('name')
@click.pass_context
@handle_s3_errors
def bucket_delete(ctx, name):
    format_output(ctx.obj['client'].delete_bucket(name), ctx.obj['outfmt'])


@bucket.command('list')
@click.pass_context
@handle_s3_errors
def bucket_list(ctx):
    """List all buckets owned by the configured credentials."""
    format_output(ctx.obj['client'].list_buckets(), ctx.obj['outfmt'])


@cli.group('object')
def object_group():
    """Object commands."""
    pass


@object_group.command('put')
@click.argument('bucket_name')
@click.argument('key')
@click.option('--data', default=None, help='Text content to upload')
@click.option('--file', 'file_path', type=click.Path(exists=True, dir_okay=False),
              help='File to upload')
@click.pass_context
@handle_s3_errors
def object_put(ctx, bucket_name, key, data, file_path):
    """Upload an object from --data or --file."""
    if (data is None) == (file_path is None):
        raise click.UsageError('Give exactly one of --data or --file')
    uploader = ctx.obj['client'].uploader()
    if file_path:
        res = uploader.upload_file(bucket_name, key, file_path)
    else:
        res = uploader.upload_string(bucket_name, key, data)
    format_output(res, ctx.obj['outfmt'])


@object_group.command('upload')
@click.argument('bucket_name')
@click.argument('key')
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--json', 'as_json', is_flag=True,
              help='Parse the file as JSON and upload it as application/json')
@click.pass_context
@handle_s3_errors
def object_upload(ctx, bucket_name, key, file_path, as_json):
    """Upload a local file, optionally re-encoded as a JSON document."""
    uploader = ctx.obj['client'].uploader()
    if as_json:
        try:
            data = json.loads(Path(file_path).read_text(encoding='utf-8'))
        except ValueError as e:
            raise click.BadParameter(f"{file_path} is not valid JSON: {e}",
                                     param_hint='FILE_PATH') from e
        res = uploader.upload_json(bucket_name, key, data)
    else:
        res = uploader.upload_file(bucket_name, key, file_path)
    format_output(res, ctx.obj['outfmt'])


@object_group.command('get')
@click.argument('bucket_name')
@click.argument('key')
@click.option('--output', '-o', 'output_path', default=None,
              help='Write the object to this file instead of stdout')
@click.pass_context
@handle_s3_errors
def object_get(ctx, bucket_name, key, output_path):
    body = ctx.obj['client'].get_object(bucket_name, key)
    if output_path:
        Path(output_path).write_bytes(body)
        click.echo(f"Wrote {len(body)} bytes to {output_path}")
    else:
        click.echo(body, nl=False)


@object_group.command('delete')
@click.argument('bucket_name')
@click.argument('key')
@click.pass_context
@handle_s3_errors
def object_delete(ctx, bucket_name, key):
    format_output(ctx.obj['client'].delete_object(bucket_name, key), ctx.obj['outfmt'])


@object_group.command('list')
@click.argument('bucket_name')
@click.option('--prefix', default=None, help='Filter prefix')
@click.option('--max-keys', type=click.IntRange(1, 1000), default=None)
@click.option('--start-after', default=None, help='Start listing after this key')
@click.pass_context
@handle_s3_errors
def object_list(ctx, bucket_name, prefix, max_keys, start_after):
    """List objects in a bucket, optionally filtered by prefix."""
    options = ListObjectsOptions(prefix=prefix, max_keys=max_keys, start_after=start_after)
    format_output(ctx.obj['client'].list_objects(bucket_name, options), ctx.obj['outfmt'])


if __name__ == '__main__':
    cli()
