from datainspect.store.descriptor_store import DescriptorStore, descriptor_key

__all__ = ["DescriptorStore", "descriptor_key"]
