import numpy as np

import fsmhost.util
from fsmhost.system import load_rig_config

# Log to console, logs also go to ~/.fsmhost/fsmhost.log
fsmhost.util.start_log(log_to_stdout=True, log_level="INFO")

rig = load_rig_config("emulator")
sm = rig.create_device()
ok, msg = sm.open()
if not ok:
    raise SystemExit(msg)

try:
    # Flex 1 digital in, Flex 2 digital out, Flex 3 analog in, Flex 4 analog out
    sm.set_flex_io([0, 1, 2, 3])
    sm.set_flex_io_analog_sampling_rate(500)
    print("Inputs: ", sm.layout.input_channel_names)
    print("Outputs:", sm.layout.output_channel_names)

    sm.start_session()
    input("Streaming analog input, press enter to stop...")
    sm.end_session()

    values = sm.analog.buffer.values
    print(f"{len(sm.analog.buffer)} samples, mean {np.mean(values):.1f} (12-bit)")
finally:
    sm.close()
    fsmhost.util.shutdown_log()
