from dotenv import load_dotenv

load_dotenv()  # loads .env before settings are read

__version__ = "0.1.0"
