import os

from geodesafio import create_app
from geodesafio.config import DevelopmentConfig

if __name__ == "__main__":
    app = create_app(DevelopmentConfig)
    port = int(os.environ.get("PORT", 5000))
    app.run(host="127.0.0.1", port=port, debug=True)
