# services/cloudinary_services.py
"""
Cloudinary storage for vendor images.

Profile images live under ``<folder>/vendors/<vendor_id>/profile`` and gallery
images under ``<folder>/vendors/<vendor_id>/gallery``. Upload and delete calls
return result dicts instead of raising so controllers can decide the response.
"""

import uuid

import cloudinary
import cloudinary.uploader
from flask import current_app
from werkzeug.utils import secure_filename


class CloudinaryImageService:

    @staticmethod
    def is_cloudinary_configured():
        """Checking if Cloudinary credentials are available"""
        return all([
            current_app.config.get('CLOUDINARY_CLOUD_NAME'),
            current_app.config.get('CLOUDINARY_API_KEY'),
            current_app.config.get('CLOUDINARY_API_SECRET')
        ])

    @staticmethod
    def configure_cloudinary():
        """Initialize Cloudinary configuration"""
        if not CloudinaryImageService.is_cloudinary_configured():
            current_app.logger.warning("Cloudinary credentials not configured")
            return False

        cloudinary.config(
            cloud_name=current_app.config.get('CLOUDINARY_CLOUD_NAME'),
            api_key=current_app.config.get('CLOUDINARY_API_KEY'),
            api_secret=current_app.config.get('CLOUDINARY_API_SECRET'),
            secure=True
        )
        return True

    @staticmethod
    def folder_for(vendor_id, kind):
        root = current_app.config.get('CLOUDINARY_FOLDER', 'aqui')
        return f"{root}/vendors/{vendor_id}/{kind}"

    @staticmethod
    def upload_vendor_image(image_file, vendor_id, kind='gallery'):
        """
        Upload one vendor image. ``kind`` is 'profile' or 'gallery'.
        """
        if not image_file or image_file.filename == '':
            return {
                'success': False,
                'error': 'No image file provided',
                'url': None,
                'public_id': None
            }

        if not CloudinaryImageService.configure_cloudinary():
            return {
                'success': False,
                'error': 'Cloudinary not configured',
                'url': None,
                'public_id': None
            }

        base_name = secure_filename(image_file.filename).rsplit('.', 1)[0] or 'image'
        public_id = f"{base_name[:40]}_{uuid.uuid4().hex[:12]}"
        folder = CloudinaryImageService.folder_for(vendor_id, kind)

        transformation = [{'width': 400, 'height': 400, 'crop': 'fill', 'gravity': 'face'}] \
            if kind == 'profile' else [{'width': 1600, 'crop': 'limit'}]

        try:
            current_app.logger.info(f"Uploading {kind} image to Cloudinary: {folder}/{public_id}")
            upload_result = cloudinary.uploader.upload(
                image_file,
                folder=folder,
                public_id=public_id,
                resource_type="image",
                overwrite=False,
                quality="auto:good",
                transformation=transformation
            )
        except Exception as e:
            current_app.logger.error(f"Cloudinary upload error for vendor {vendor_id}: {str(e)}")
            return {
                'success': False,
                'error': str(e),
                'url': None,
                'public_id': None
            }

        if 'secure_url' in upload_result and 'public_id' in upload_result:
            current_app.logger.info(f"Image uploaded successfully: {upload_result['secure_url']}")
            return {
                'success': True,
                'url': upload_result['secure_url'],
                'public_id': upload_result['public_id'],
                'error': None
            }

        current_app.logger.error(f"Invalid Cloudinary response: {upload_result}")
        return {
            'success': False,
            'error': 'Invalid Cloudinary response',
            'url': None,
            'public_id': None
        }

    @staticmethod
    def delete_image(public_id):
        """Delete an image; a missing image counts as deleted."""
        if not public_id:
            return {'success': True, 'result': 'not found'}

        if not CloudinaryImageService.configure_cloudinary():
            return {'success': False, 'error': 'Cloudinary not configured'}

        try:
            result = cloudinary.uploader.destroy(public_id, resource_type="image")
        except Exception as e:
            current_app.logger.error(f"Cloudinary delete error for {public_id}: {str(e)}")
            return {'success': False, 'error': f'Cloudinary deletion error: {str(e)}'}

        if result.get('result') in ('ok', 'not found'):
            current_app.logger.info(f"Deleted Cloudinary image {public_id}")
            return {'success': True, 'result': result.get('result')}

        current_app.logger.error(f"Cloudinary refused to delete {public_id}: {result}")
        return {'success': False, 'error': f'Delete failed: {result}'}

    @staticmethod
    def cleanup_uploads(public_ids):
        """Best-effort removal of images uploaded by a request that later failed."""
        removed = 0
        for public_id in public_ids:
            if CloudinaryImageService.delete_image(public_id).get('success'):
                removed += 1
            else:
                current_app.logger.warning(f"Could not clean up orphaned upload {public_id}")
        return removed
