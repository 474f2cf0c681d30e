"""
Module de configuration de VPSearch.
Lit config.yaml et complète les sections manquantes avec les valeurs par défaut.
"""

import copy
import os
import yaml

# config.yaml à la racine du dépôt
DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), "config.yaml")

# Valeurs par défaut (miroir de config.yaml)
DEFAULT_CONFIG = {
    "general": {
        "debug": False
    },
    "build_tree": {
        "strategy": "standard",  # ou "legacy" (partition d'origine, perd l'élément médian)
        "seed": None,
        "max_workers": 1,
        "parallel_min_size": 2000
    },
    "search": {
        "k": 3,
        "use_faiss": True,
        "decimals": 2
    },
    "test": {
        "items": 10000,
        "queries": 100,
        "k": 10,
        "seed": 42,
        "feature_ranges": {
            "tempo": [60.0, 200.0],
            "pitch": [30.0, 90.0],
            "duration": [120.0, 360.0]
        }
    },
    "files": {
        "catalog_dir": ".",
        "catalog": None,
        "stats_file": "tree_stats.txt"
    }
}

class ConfigManager:
    """Accès aux paramètres de construction, de recherche et de test."""

    def __init__(self, config_path=None):
        """
        Charge la configuration.

        Paramètres :
            config_path: Fichier YAML à lire (config.yaml du dépôt si None).
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self.config = self.load_config()

    def load_config(self):
        """
        Lit le fichier YAML et le complète.
        Un fichier absent, illisible ou mal formé n'est pas fatal : un avertissement
        est affiché et les valeurs par défaut sont utilisées.

        Retourne :
            Dict: Configuration complète.
        """
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}

            if not isinstance(config, dict):
                raise ValueError(f"la racine du fichier doit être un dictionnaire, pas {type(config).__name__}")

            self._ensure_complete_config(config)

            return config
        except (OSError, yaml.YAMLError, ValueError) as e:
            print(f"⚠️ Configuration {self.config_path} ignorée: {str(e)}")
            print(f"⚠️ Utilisation des paramètres par défaut")
            return copy.deepcopy(DEFAULT_CONFIG)

    def _ensure_complete_config(self, config, defaults=None):
        """
        Ajoute les sections et les clés absentes, sans écraser les valeurs présentes.
        Les sous-dictionnaires (feature_ranges) sont complétés clé par clé.

        Paramètres :
            config: Configuration lue, modifiée sur place.
            defaults: Valeurs par défaut du niveau courant (DEFAULT_CONFIG si None).
        """
        if defaults is None:
            defaults = DEFAULT_CONFIG
        for key, default_value in defaults.items():
            if isinstance(default_value, dict):
                if not isinstance(config.get(key), dict):
                    config[key] = copy.deepcopy(default_value)
                else:
                    self._ensure_complete_config(config[key], default_value)
            elif key not in config:
                config[key] = copy.deepcopy(default_value)

    def get_section(self, section):
        """
        Paramètres :
            section: "build_tree", "search", "test", "files" ou "general".

        Retourne :
            Dict: La section, ou {} si elle est inconnue.
        """
        return self.config.get(section, {})

    def get(self, section, key, default=None):
        """
        Lit une valeur.

        Paramètres :
            section: Section contenant la clé.
            key: Nom du paramètre.
            default: Valeur retournée si la clé est absente.
        """
        return self.get_section(section).get(key, default)

    def get_file_path(self, file_key, default=None):
        """
        Résout un fichier de la section 'files' par rapport à catalog_dir.

        Paramètres :
            file_key: "catalog" ou "stats_file".
            default: Valeur retournée si le fichier n'est pas configuré.

        Retourne :
            Le chemin du fichier (inchangé s'il est absolu), ou default.
        """
        files_section = self.get_section("files")
        file_name = files_section.get(file_key)
        if not file_name:
            return default

        if os.path.isabs(file_name):
            return file_name
        return os.path.join(files_section.get("catalog_dir", "."), file_name)

    def reload(self, config_path=None):
        """Relit la configuration, éventuellement depuis un autre fichier."""
        if config_path:
            self.config_path = config_path
        self.config = self.load_config()

    def __str__(self):
        return f"ConfigManager({self.config_path})"
