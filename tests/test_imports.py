# test_imports.py
import sys
print("Python path:", sys.path)

try:
    import case_configs
    print("✅ case_configs imported successfully")
    print("Module location:", case_configs.__file__)
except ImportError as e:
    print("❌ Failed to import case_configs:", e)

try:
    from case_configs.core.attach import attach_entries
    print("✅ attach_entries imported successfully")
except ImportError as e:
    print("❌ Failed to import attach_entries:", e)
