import argparse

import config


def main():
    ap = argparse.ArgumentParser(description="Room 213 – procedural horror short")
    ap.add_argument("--fullscreen", action="store_true", help="open fullscreen")
    ap.add_argument("--no-remote", action="store_true", help="do not start the web remote")
    ap.add_argument("--port", type=int, default=config.WEB_PORT, help="web remote port")
    ap.add_argument("--record", action="store_true",
                    help="record one pass, save it and exit")
    ap.add_argument("--narrate", action="store_true",
                    help="start the narration together with --record")
    ap.add_argument("--out", default=config.OUTPUT_DIR, help="artifact directory")
    args = ap.parse_args()

    config.FULLSCREEN = args.fullscreen
    config.OUTPUT_DIR = args.out

    from app import Room213App
    import web_remote

    app = Room213App()
    if config.WEB_REMOTE and not args.no_remote:
        web_remote.start(app, args.port)

    if args.record:
        if args.narrate:
            app.narrator.speak(app.composer.script.text, config.DURATION)
        saved = app.record()
        app.narrator.stop()
        raise SystemExit(0 if saved else 1)

    app.run()


if __name__ == "__main__":
    main()
