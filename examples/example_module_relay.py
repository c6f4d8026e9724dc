import sys
import time

import fsmhost.util
from fsmhost.system import load_rig_config

# Usage: python example_module_relay.py RIG_NAME [PANEL]
RIG_NAME = sys.argv[1] if len(sys.argv) > 1 else "emulator"
PANEL = int(sys.argv[2]) if len(sys.argv) > 2 else 1

fsmhost.util.start_log(log_to_stdout=True, log_level="DEBUG")


def show(module_name, data):
    print(f"[{module_name}] {data.hex(' ')}")


sm = load_rig_config(RIG_NAME).create_device(relay_sink=show)
sm.open()
try:
    # as a console does when the user clicks on a module's panel
    if sm.switch_panel(PANEL):
        print(f"Relaying {sm.relay.active_module()}, Ctrl+C to stop")
        while True:
            time.sleep(0.5)
    else:
        print(f"Panel {PANEL} does not relay")
except KeyboardInterrupt:
    pass
finally:
    sm.close()
