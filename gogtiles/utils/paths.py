"""
Default locations used by gogtiles.

GOG Galaxy 2.0 keeps its library in a single SQLite file under ProgramData, and
the Start Menu shortcuts live below the roaming AppData folder of the user.
"""
import os

# GOG Galaxy 2.0 install and data locations
DEFAULT_GALAXY_DIR = "C:/ProgramData/GOG.com/Galaxy"
DATABASE_LOCATION = "storage/galaxy-2.0.db"
DEFAULT_GALAXY_CLIENT = r"C:\Program Files (x86)\GOG Galaxy\GalaxyClient.exe"

# Layout files are written to the working directory unless configured otherwise
DEFAULT_LAYOUT_FILE = "PartialStartLayout.xml"
DEFAULT_BACKUP_FILE = "StartLayoutBackup.xml"

START_MENU_SUBDIR = os.path.join(
    "Microsoft", "Windows", "Start Menu", "Programs", "GOG.com", "GameTiles"
)


def get_appdata_dir() -> str:
    """Roaming AppData of the current user, falling back to the default profile layout."""
    appdata = os.environ.get("APPDATA")
    if appdata:
        return appdata
    return os.path.join(os.path.expanduser("~"), "AppData", "Roaming")


def get_default_start_menu_dir() -> str:
    """Folder that receives launcher scripts, manifests and shortcuts."""
    return os.path.join(get_appdata_dir(), START_MENU_SUBDIR)


def get_database_path(galaxy_dir: str) -> str:
    """Database file inside a (possibly non-default) Galaxy data directory."""
    return os.path.join(galaxy_dir, DATABASE_LOCATION)
