import os

from luxbroker import create_app

app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5021))
    app.logger.info('Starting LuxBroker API on port %d', port)
    app.run(host='0.0.0.0', port=port, debug=os.environ.get('FLASK_DEBUG') == '1')
