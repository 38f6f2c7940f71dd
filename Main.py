"""
Project: CARLA CameraView

## About:
Deploys virtual RGB cameras on a CARLA actor and shows every feed in its own
tile of a fixed-size canvas (default: IPG Video Interface Box, 7680x1232).
Press 'q' in the terminal, or q/ESC in the window, to stop. Cameras are
removed from the simulation on exit.

Exit codes: 0 normal, 1 connection timeout, 2 other unrecoverable error.
"""

# ============================================================================
# PERF CHECK (file-level):
# ============================================================================
# [X] | Role: CLI, CARLA connection, orchestration, exit codes
# [ ] | Hot-path functions: None (display loop lives in DisplayScheduler)
# [ ] |- Heavy allocs in hot path? N/A
# [X] |- pandas/pyarrow/json/disk/net in hot path? RPCs only during setup/teardown
# [ ] | Graphics here? No (delegated to PygameDisplay)
# [ ] | Data produced (tick schema?): None
# [ ] | Storage (Parquet/Arrow/CSV/none): None
# [ ] | Queue/buffer used?: No
# [ ] | Session-aware? No
# [ ] | Debug-only heavy features?: -v enables per-camera teardown stats
# ============================================================================

import argparse
import logging
import sys

from CameraRig import CameraRig, get_actor_display_name
from Core.Display import (
    VIB_RES_X,
    VIB_RES_Y,
    DisplayScheduler,
    KeyboardMonitor,
    ShutdownSignal,
    assign_tiles,
    canvas_extent,
    compute_grid,
    parse_resolution,
    resolve_camera_count,
)
from Core.Display.DisplaySurface import PygameDisplay
from Core.Exceptions import ActorNotFoundError, CameraViewError, SimulatorConnectionError
from Core.Sensors import (
    SENSOR_DEFAULTS,
    DropPolicy,
    MountPresets,
    get_rgb_camera_blueprint,
    read_resolution,
)
from Utility.Font.FontIconLibrary import IconLibrary

EXIT_OK = 0
EXIT_CONNECTION = 1
EXIT_ERROR = 2

iLib = IconLibrary()


def build_arg_parser():
    cam_defaults = SENSOR_DEFAULTS["camera"]
    argparser = argparse.ArgumentParser(
        prog="carla-cameraview",
        description="A simple tool to deploy virtual cameras on a CARLA actor",
    )
    argparser.add_argument(
        "-v", "--verbose", action="store_true", dest="debug", help="print debug information"
    )
    argparser.add_argument(
        "-s", "--server", metavar="H", default="localhost", help="CARLA server host"
    )
    argparser.add_argument(
        "-p", "--port", metavar="P", default=2000, type=int, help="CARLA server RPC port"
    )
    argparser.add_argument(
        "-i", "--actor-id", metavar="ID", default=86, type=int, help="id of the actor to mount cameras on"
    )
    argparser.add_argument(
        "-n", "--num-cams", metavar="N", default=4, type=int, help="number of cameras"
    )
    argparser.add_argument(
        "-m", "--max-cams", action="store_true", help="deploy as many cameras as the canvas can tile"
    )
    argparser.add_argument(
        "-x", "--resx", metavar="X", default=cam_defaults["resolution"][0], type=int,
        help="camera resolution in X",
    )
    argparser.add_argument(
        "-y", "--resy", metavar="Y", default=cam_defaults["resolution"][1], type=int,
        help="camera resolution in Y",
    )
    argparser.add_argument(
        "-f", "--fieldofview", metavar="DEG", default=cam_defaults["fov"], type=float,
        help="camera horizontal field of view",
    )
    argparser.add_argument(
        "--canvas", metavar="WIDTHxHEIGHT", default=f"{VIB_RES_X}x{VIB_RES_Y}",
        help="physical output resolution the camera tiles must fit in",
    )
    argparser.add_argument(
        "--timeout", metavar="SEC", default=10.0, type=float, help="CARLA connection timeout"
    )
    argparser.add_argument(
        "--display", metavar="INDEX", default=0, type=int, help="index of the display to open the canvas on"
    )
    argparser.add_argument(
        "--mount-config", metavar="FILE", default=None,
        help="JSON file with camera mount presets (overrides builtin front/rear/left/right)",
    )
    argparser.add_argument(
        "--drop-oldest", action="store_true",
        help="when a camera buffer is full, evict the oldest frame instead of the incoming one",
    )
    argparser.add_argument(
        "--strict-decode", action="store_true", help="stop on the first malformed camera frame"
    )
    argparser.add_argument(
        "--fps", metavar="FPS", default=0.0, type=float, help="cap the display loop rate (0 = uncapped)"
    )
    return argparser


def connect_to_simulator(host, port, timeout):
    """Returns (client, world). Any RPC failure during the handshake is a connection error."""
    import carla

    try:
        client = carla.Client(host, port)
        client.set_timeout(timeout)
        world = client.get_world()
        logging.info(f"Client API version : {client.get_client_version()}")
        logging.info(f"Server API version : {client.get_server_version()}")
    except RuntimeError as e:
        raise SimulatorConnectionError(f"Could not reach CARLA at {host}:{port}: {e}") from e
    return client, world


def find_vehicle(world, actor_id):
    vehicle = world.get_actor(actor_id)
    if vehicle is None:
        raise ActorNotFoundError(actor_id)
    iLib.ilog("info", f"Got actor! {get_actor_display_name(vehicle)}", "status_alerts", "s")
    return vehicle


def run(args, display=None, input_stream=None) -> int:
    """Whole session: connect, deploy cameras, show them, tear down. Returns the exit code."""
    shutdown = ShutdownSignal()
    rig = None
    display = display or PygameDisplay(display_index=args.display)
    try:
        canvas = parse_resolution(args.canvas)
        _client, world = connect_to_simulator(args.server, args.port, args.timeout)

        # resolution as the simulator accepted it, not as typed
        template = get_rgb_camera_blueprint(world.get_blueprint_library(), args.resx, args.resy, args.fieldofview)
        cam_res = read_resolution(template)
        grid = compute_grid(canvas, cam_res)
        num_cams = resolve_camera_count(grid, args.num_cams, args.max_cams)

        vehicle = find_vehicle(world, args.actor_id)
        presets = MountPresets.load(args.mount_config)

        rig = CameraRig(
            world, vehicle, cam_res.width, cam_res.height, args.fieldofview, presets,
            drop_policy=DropPolicy.OLDEST if args.drop_oldest else None,
            strict_decode=args.strict_decode,
        )
        # mounts follow the request even when the canvas caps the count
        requested = grid.max_cameras if args.max_cams else args.num_cams
        cameras = rig.build(num_cams, requested)
        logging.info(f"Num cams: {num_cams} Max Horz: {grid.max_horizontal} Max Vert: {grid.max_vertical}")

        rig.spawn_all(on_fault=lambda cam, err: shutdown.request("decode"))

        tiles = assign_tiles(grid, cam_res, num_cams)
        display.open(canvas_extent(tiles, cam_res))
        scheduler = DisplayScheduler(cameras, display, shutdown, tiles, max_fps=args.fps)
        scheduler.open_windows()
        KeyboardMonitor(shutdown, stream=input_stream).start()
        scheduler.run()

        if rig.faults:
            for cam, fault in rig.faults:
                iLib.ilog("error", f"Camera {cam.id} failed: {fault}", "status_alerts", "f")
            return EXIT_ERROR
        return EXIT_OK

    except SimulatorConnectionError as e:
        iLib.ilog("critical", f"{e}", "net", "timeout")
        return EXIT_CONNECTION
    except (CameraViewError, ValueError) as e:
        iLib.ilog("critical", f"Exception: {e}", "status_alerts", "skull")
        return EXIT_ERROR
    except Exception as e:
        logging.critical(f"☠️ Unhandled exception: {e}", exc_info=True)
        return EXIT_ERROR
    finally:
        if rig:
            rig.destroy_all()
        display.close()
        shutdown.request("exit")


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(levelname)s - [%(module)s:%(funcName)s:%(lineno)d] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    code = run(args)
    logging.info("🏁 CameraView finished.")
    return code


if __name__ == "__main__":
    sys.exit(main())
