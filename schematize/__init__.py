import importlib

mod = "schematize"
class LazyLoader:
    """    
    Lazy loader for the schematize functions to speed up startup time.    
    """
    def __init__(self, mappings):
        self._modules = {}
        self._mappings = mappings

    def _load_module(self, module_name):
        if module_name not in self._modules:
            self._modules[module_name] = importlib.import_module(module_name)
        return self._modules[module_name]

    def __getattr__(self, item):
        if item in self._mappings:
            module_name, func_name = self._mappings[item]
            module = self._load_module(module_name)
            return getattr(module, func_name)
        else:
            return self._load_module(f"{mod}.{item}")

# Define the functions and their corresponding module paths
_mappings = {
    "Schema": (f"{mod}.schema", "Schema"),
    "SchemaNode": (f"{mod}.schema", "SchemaNode"),
    "parse_value": (f"{mod}.schema_values", "parse_value"),
    "infer_schema_from_json_events": (f"{mod}.schema_inference", "infer_schema_from_json_events"),
    "infer_schema_from_xml_events": (f"{mod}.schema_inference", "infer_schema_from_xml_events"),
    "infer_schema_from_json_file": (f"{mod}.jsontoschema", "infer_schema_from_json_file"),
    "infer_schema_from_xml_file": (f"{mod}.xmltoschema", "infer_schema_from_xml_file"),
    "convert_json_to_schema": (f"{mod}.jsontoschema", "convert_json_to_schema"),
    "convert_xml_to_schema": (f"{mod}.xmltoschema", "convert_xml_to_schema"),
    "serialize_schema": (f"{mod}.serialization", "serialize_schema"),
    "persist_schema": (f"{mod}.serialization", "persist_schema"),
}

_lazy_loader = LazyLoader(_mappings)

def __getattr__(name):
    return getattr(_lazy_loader, name)
