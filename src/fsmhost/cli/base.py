import time
from contextlib import contextmanager

import click
from loguru import logger
from rich.console import Console
from rich.table import Table

from fsmhost.types import FlexIOType, FSMError
from fsmhost.util import DEFAULT_LOGLEVEL, start_log
from fsmhost.util.check_hw import get_hw_ports


def print_tree(cmd, prefix="", parent_ctx=None):
    """Print command tree starting from given command."""
    ctx = click.Context(cmd, info_name=cmd.name, parent=parent_ctx)

    # Only print root name if no parent
    if not parent_ctx:
        click.echo(cmd.name)

    for sub in sorted(cmd.list_commands(ctx)):
        sub_cmd = cmd.get_command(ctx, sub)
        click.echo(f"{prefix}└── {sub}")
        if isinstance(sub_cmd, click.Group):
            print_tree(sub_cmd, prefix + "    ", ctx)


def tree_option(f):
    """Add --tree option to command."""

    def callback(ctx, param, value):
        if not value or ctx.resilient_parsing:
            return
        print_tree(ctx.command)
        ctx.exit()

    return click.option(
        "--tree",
        is_flag=True,
        help="Show command tree from this point",
        expose_value=False,
        is_eager=True,
        callback=callback,
    )(f)


rig_option = click.option(
    "--rig-name",
    "-n",
    required=True,
    help='Name of the rig configuration to use (e.g. "emulator")',
)


@contextmanager
def open_rig(rig_name: str, **device_kwargs):
    """Load a rig, open its device and close it on exit.

    Device and configuration errors are turned into click errors, so the
    command exits non-zero with the message.
    """
    from fsmhost.system import load_rig_config

    try:
        rig = load_rig_config(rig_name)
    except ValueError as e:
        raise click.ClickException(str(e))
    device = rig.create_device(**device_kwargs)
    ok, msg = device.open()
    if not ok:
        raise click.ClickException(f"Could not open rig '{rig_name}': {msg}")
    try:
        yield device
    except FSMError as e:
        raise click.ClickException(str(e))
    finally:
        device.close()


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Log to the console at --log-level (default: logging disabled)",
)
@click.option(
    "--log-level",
    "-ll",
    default=DEFAULT_LOGLEVEL,
    help="Logging level (TRACE, DEBUG, INFO, WARNING, ERROR) (default: INFO)",
)
@tree_option
def cli(verbose, log_level):
    """fsmhost - host-side control of a finite-state-machine controller.

    - Flex I/O channel configuration and analog input sampling rate

    - Module byte-stream relay

    - Rig configuration management and serial port discovery
    """
    if verbose:
        start_log(log_to_file=False, log_to_stdout=True, log_level=log_level)
    else:
        logger.disable("fsmhost")


@cli.command()
def ports():
    """List all available serial ports."""
    ports = get_hw_ports()

    if not ports:
        click.echo("No serial ports found")
        return

    table = Table(title="Available serial ports")
    table.add_column("Port")
    table.add_column("Description")
    table.add_column("Hardware ID")
    for port, info in ports.items():
        description, hwid = (info + ("", ""))[:2]
        table.add_row(port, description, hwid)
    Console().print(table)


@cli.command()
@click.option(
    "--init",
    is_flag=True,
    default=False,
    help="Create (or extend) ~/.fsmhost/rigs.ini with an example rig",
)
def rigs(init):
    """List available rig configurations."""
    from fsmhost.system import list_available_rigs
    from fsmhost.system.rigconfig import create_default_rigs_file, user_rigs_file

    if init:
        create_default_rigs_file(user_rigs_file())
        click.echo(f"Wrote {user_rigs_file()}")

    available = list_available_rigs()
    if not available:
        click.echo("No rig configurations found")
        return

    package_rigs = [name for name, src in available.items() if src == "package"]
    user_rigs = [name for name, src in available.items() if src == "user"]
    if package_rigs:
        click.echo("\nPackage defaults:")
        for name in sorted(package_rigs):
            click.echo(f"  - {name}")
    if user_rigs:
        click.echo("\nUser configurations:")
        for name in sorted(user_rigs):
            click.echo(f"  - {name}")
    click.echo("")


@cli.command()
@rig_option
def info(rig_name):
    """Show identity, modules and Flex I/O layout of a rig."""
    with open_rig(rig_name) as sm:
        hw = sm.hw
        console = Console()
        console.print(
            f"[bold]{rig_name}[/bold]: {hw.machine_type.name}, "
            + f"firmware v{hw.firmware_version}, {hw.cycle_frequency} Hz"
            + (" [yellow](emulator)[/yellow]" if sm.emulator_mode else "")
        )

        modules = Table(title="Modules")
        modules.add_column("Slot")
        modules.add_column("Name")
        modules.add_column("Connected")
        for i, m in enumerate(sm.modules.modules):
            modules.add_row(str(i + 1), m.name, "yes" if m.connected else "no")
        console.print(modules)

        if hw.n_flex_io:
            layout = sm.layout
            flex = Table(title="Flex I/O")
            flex.add_column("Channel")
            flex.add_column("Type")
            flex.add_column("Events")
            flex.add_column("Input")
            flex.add_column("Output")
            events = layout.flex_event_names(hw)
            inputs = layout.flex_input_names(hw)
            outputs = layout.flex_output_names(hw)
            for i, t in enumerate(sm.flex_io_channel_types):
                flex.add_row(
                    str(i + 1),
                    t.name,
                    ", ".join(events[2 * i : 2 * i + 2]),
                    inputs[i],
                    outputs[i],
                )
            console.print(flex)


@cli.command()
@rig_option
@click.argument("types", nargs=-1, type=int, required=True)
def flexio(rig_name, types):
    """Set the Flex I/O channel types.

    TYPES: one code per channel (0 = DI, 1 = DO, 2 = ADC, 3 = DAC)
    """
    with open_rig(rig_name) as sm:
        sm.set_flex_io(list(types))
        click.echo(
            "Flex I/O set to " + ", ".join(FlexIOType(t).name for t in types)
        )


@cli.command()
@rig_option
@click.argument("hz", type=float)
def rate(rig_name, hz):
    """Set the Flex I/O analog input sampling rate (Hz)."""
    with open_rig(rig_name) as sm:
        sm.set_flex_io_analog_sampling_rate(hz)
        click.echo(f"Analog input sampling rate set to {hz:g} Hz")


@cli.command()
@rig_option
@click.argument("state", type=click.Choice(["on", "off"]))
def led(rig_name, state):
    """Enable or disable the status LED."""
    with open_rig(rig_name) as sm:
        sm.set_status_led(state == "on")
        click.echo(f"Status LED {state}")


@cli.command()
@rig_option
@click.argument("module")
@click.option(
    "--duration",
    "-d",
    type=float,
    default=5.0,
    help="Seconds to relay for (default: 5)",
)
def relay(rig_name, module, duration):
    """Relay a module's byte stream and print it as hex.

    MODULE: name of the module, as in the rig configuration
    """

    def echo_bytes(name, data):
        click.echo(f"{name}: {data.hex(' ')}")

    with open_rig(rig_name, relay_sink=echo_bytes) as sm:
        sm.start_module_relay(module)
        click.echo(f"Relaying {module} for {duration:g} s (Ctrl+C to stop)")
        try:
            time.sleep(duration)
        except KeyboardInterrupt:
            pass
        sm.stop_module_relay()
