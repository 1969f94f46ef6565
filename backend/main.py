import os
from dailyvibes import create_app

app = create_app()

if __name__ == "__main__":
    # Must be 0.0.0.0 so devices on the LAN can reach it
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", "3000"))
    debug = os.getenv("DAILYVIBES_ENV", "dev") == "dev"

    # The reloader would start the daily scheduler twice.
    app.run(host=host, port=port, debug=debug, use_reloader=False)
