import importlib

mod = "avroinfer"
class LazyLoader:
    """
    Lazy loader for the avroinfer functions to speed up startup time.
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
    "convert_document": (f"{mod}.convert", "convert_document"),
    "convert_json_to_avro": (f"{mod}.jsontoavro", "convert_json_to_avro"),
    "convert_openapi_to_avro": (f"{mod}.openapitoavro", "convert_openapi_to_avro"),
    "infer_avro_type_from_json": (f"{mod}.schema_inference", "infer_avro_type_from_json"),
    "generate_avro_schema": (f"{mod}.schema_generator", "generate_avro_schema"),
    "generate_unified_avro_schema": (f"{mod}.unified_schema_generator", "generate_unified_avro_schema"),
    "load_avro_schema": (f"{mod}.schemaloader", "load_avro_schema"),
}

_lazy_loader = LazyLoader(_mappings)

def __getattr__(name):
    return getattr(_lazy_loader, name)
