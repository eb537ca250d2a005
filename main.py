"""
Main entry point for the Flight Booking API
Initializes the database schema and serves the REST API
"""
import argparse
import logging

from api import create_app
from api.config import get_config
from database.database import init_db


def main():
    """Main entry point"""
    config = get_config()

    parser = argparse.ArgumentParser(description="Flight booking API server")
    parser.add_argument("--host", default=config.HOST, help="Interface to bind")
    parser.add_argument("--port", type=int, default=config.PORT, help="Port to listen on")
    parser.add_argument("--init-db", action="store_true",
                        help="Create the schema and exit without serving")
    args = parser.parse_args()

    if args.init_db:
        init_db()
        return

    app = create_app(config)
    logging.getLogger(__name__).info("Serving on %s:%s", args.host, args.port)
    app.run(host=args.host, port=args.port, debug=config.DEBUG, threaded=True)


if __name__ == '__main__':
    main()
