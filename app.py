from eaststore import create_app

# Jalankan dengan: flask --app app run
app = create_app()

if __name__ == '__main__':
    app.run(debug=True)
